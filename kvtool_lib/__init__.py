"""kvtool: one key-value interface over an embedded file store or Consul."""

__version__ = "0.1.0"
