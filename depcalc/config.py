"""
Configuration for depcalc.

Every field can be overridden with a DEPCALC_ prefixed environment variable,
e.g. DEPCALC_ROOT=/src/project or DEPCALC_PRINT_STD=true.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .context import DEFAULT_ENV_KEYS


DEFAULT_LIST_FORMAT = "{id}"
DEFAULT_CUT_FORMAT = "{id}\tin:{in_degree}\tpkgs:{cut.package_count}\tsize:{cut.all_files.size}\tloc:{cut.python.lines}"


class Settings(BaseSettings):
	model_config = SettingsConfigDict(env_prefix="DEPCALC_")

	log_level: str = "WARNING"

	# source tree scanned when no snapshot is given
	root: str = "."
	snapshot: Optional[str] = None

	print_std: bool = False
	prefetch_std: bool = True
	env_keys: List[str] = sorted(DEFAULT_ENV_KEYS)

	list_format: str = DEFAULT_LIST_FORMAT
	cut_format: str = DEFAULT_CUT_FORMAT

	# command printing a "caller -> callee" symbol dump, package ids are appended
	deadcode_command: List[str] = []


settings = Settings()
