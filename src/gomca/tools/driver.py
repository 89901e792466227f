import shutil
from pathlib import Path
from typing import List, Optional

from ..errors import ToolNotFoundError
from ..utils.config import ConfigManager

# llvm is keg-only on Homebrew, so llvm-mca is usually not on PATH.
_MCA_FALLBACK_PATHS = [
    "/opt/homebrew/opt/llvm/bin/llvm-mca",
    "/usr/local/opt/llvm/bin/llvm-mca",
]


class ToolDriver:
    """
    Locates `go` and `llvm-mca` and builds their command lines.
    """
    def __init__(self, config_manager: Optional[ConfigManager] = None):
        self.config = config_manager if config_manager else ConfigManager()
        self.go = self.config.get("go", "go")
        self.llvm_mca = self.config.get("llvm_mca", "llvm-mca")

    def go_path(self) -> str:
        path = shutil.which(self.go)
        if not path:
            raise ToolNotFoundError(f"{self.go} not found in PATH")
        return path

    def mca_path(self) -> str:
        path = shutil.which(self.llvm_mca)
        if not path:
            for p in _MCA_FALLBACK_PATHS:
                if Path(p).exists():
                    path = p
                    break
        if not path:
            raise ToolNotFoundError(f"{self.llvm_mca} not installed")
        return path

    def objdump_command(self, symbol_regexp: str, binary: str) -> List[str]:
        return [
            self.go_path(),
            "tool", "objdump",
            "-gnu",  # GNU mnemonics in a trailing // comment
            "-s", symbol_regexp,
            binary,
        ]

    def mca_command(self, extra_args: Optional[List[str]] = None) -> List[str]:
        return [self.mca_path(), *(extra_args or [])]
