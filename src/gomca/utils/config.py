import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "go": "go",
    "llvm_mca": "llvm-mca",
    # Annotations for `gomca fix`; `gomca run` feeds llvm-mca bare mnemonics.
    "show_file": True,
    "show_offset": False,
    "show_instruction_bytes": False,
    "show_high_level_asm": True,
}


class ConfigManager:
    """
    Persistent user preferences in ~/.gomca/config.json.
    Values in the file override DEFAULT_CONFIG key by key.
    """
    def __init__(self):
        self.config_dir = Path.home() / ".gomca"
        self.config_file = self.config_dir / "config.json"
        self.config = self.load_config()

    def load_config(self) -> Dict[str, Any]:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        config = DEFAULT_CONFIG.copy()
        if not self.config_file.exists():
            return config
        try:
            with open(self.config_file, "r") as f:
                user_config = json.load(f)
            if isinstance(user_config, dict):
                config.update(user_config)
            else:
                logger.warning("Ignoring %s: expected a JSON object", self.config_file)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable config %s: %s", self.config_file, e)
        return config

    def save_config(self):
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w") as f:
            json.dump(self.config, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def set(self, key: str, value: Any):
        self.config[key] = value
        self.save_config()
