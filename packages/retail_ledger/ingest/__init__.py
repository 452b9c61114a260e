from .export import LedgerExport, load_export, parse_export

__all__ = ["LedgerExport", "load_export", "parse_export"]
