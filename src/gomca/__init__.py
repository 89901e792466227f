from .parsing import RenderConfig, fix, mangle, parse_line
from .errors import GomcaError, DisasmSyntaxError, ProcessError

__version__ = "0.1.0"
