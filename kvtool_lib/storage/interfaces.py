from typing import Protocol, List, Sequence, runtime_checkable


@runtime_checkable
class StoreProtocol(Protocol):
    """Store protocol mirroring `kvtool_lib.storage.base.Store`.

    Implementations should follow the semantics documented on the abstract
    base class (NotFoundError for missing keys, idempotent deletes, etc.).
    """

    def init(self, opts: Sequence[str]) -> None: ...

    def get(self, key: str) -> bytes: ...

    def put(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...

    def list_keys(self, prefix: str = "") -> List[str]: ...

    def delete_tree(self, prefix: str) -> None: ...

    def close(self) -> None: ...
