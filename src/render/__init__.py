"""Output renderers for result entries."""

from render.jsonl import write_jsonl
from render.pretty import print_entries

__all__ = ["print_entries", "write_jsonl"]
