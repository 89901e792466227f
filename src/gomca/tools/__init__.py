from .driver import ToolDriver

__all__ = ["ToolDriver"]
