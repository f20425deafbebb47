from .extractor import decompose as decompose

__all__ = ["decompose"]
