from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from services.app_config import AppConfig
from services.date_range import Clock
from services.time_logs_api import TimeLogsApi


@dataclass
class PageContext:
	"""
	Per-client collaborators for one page build.

	Nothing in here is a module-level singleton: main.py creates a fresh
	context per client and tears it down on disconnect.
	"""

	config: AppConfig = field(default_factory=AppConfig)

	# Source of "today" for the picker shortcuts and highlighting.
	clock: Clock = date.today

	# -------- Client → backend --------
	# Time-logs collaborator API. One session per client, closed on disconnect.
	api: Optional[TimeLogsApi] = None

	def close(self) -> None:
		if self.api is not None:
			self.api.close()
			self.api = None
