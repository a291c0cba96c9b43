from typing import Any, Dict, Protocol, Type
import pickle
import json
import yaml


class Serializer(Protocol):
    """Turns a Python value into the bytes handed to `Store.put` and back.

    `load(dump(v))` must give back an equal value.
    """

    def dump(self, value: Any) -> bytes: ...

    def load(self, data: bytes) -> Any: ...


class PickleSerializer:
    """Binary serializer for arbitrary Python objects.

    Only load data written by a trusted party; unpickling runs code.
    """

    protocol = pickle.HIGHEST_PROTOCOL

    def dump(self, value: Any) -> bytes:
        return pickle.dumps(value, self.protocol)

    def load(self, data: bytes) -> Any:
        return pickle.loads(bytes(data))


class JSONSerializer:
    """UTF-8 JSON with sorted keys; plain objects are written as their attributes."""

    def dump(self, value: Any) -> bytes:
        text = json.dumps(value, sort_keys=True, ensure_ascii=False, default=vars)
        return text.encode("utf-8")

    def load(self, data: bytes) -> Any:
        return json.loads(bytes(data))


class YAMLSerializer:
    """YAML text through `safe_dump`, so only plain data types are accepted."""

    def dump(self, value: Any) -> bytes:
        return yaml.safe_dump(value, allow_unicode=True).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return yaml.safe_load(bytes(data).decode("utf-8"))


SERIALIZERS: Dict[str, Type] = {
    "pickle": PickleSerializer,
    "json": JSONSerializer,
    "yaml": YAMLSerializer,
}
