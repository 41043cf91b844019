"""
Application configuration for the operating-room duration monitor.

Provides environment-aware settings with conservative defaults. Classification
thresholds and the policy choice are configurable so callers never hard-code
"magic numbers". The classifier itself stays configuration-free: callers read
these settings at startup and hand a policy object to it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DeviationThresholds(BaseModel):
	"""
	Thresholds for the percentage-deviation policy.

	Values are ratios of (actual - median) / median:
	- warning: 0.10 means 10% over the historical median.
	- critical: 0.25 means 25% over the historical median.
	"""

	warning: float = Field(0.10, ge=0.0, description="Warning deviation ratio")
	critical: float = Field(0.25, ge=0.0, description="Critical deviation ratio")

	@model_validator(mode="after")
	def _check_order(self) -> "DeviationThresholds":
		if self.critical < self.warning:
			raise ValueError("critical threshold must be >= warning threshold")
		return self


class AnomalyConfig(BaseModel):
	"""
	Duration anomaly classification configuration.

	Notes:
	- policy: "percentage_deviation" (default) or "percentile_threshold".
	- thresholds: only used by the percentage-deviation policy.
	"""

	policy: str = Field(
		"percentage_deviation",
		description="Classification policy: 'percentage_deviation' or 'percentile_threshold'",
	)
	thresholds: DeviationThresholds = DeviationThresholds()


class WorklistConfig(BaseModel):
	"""
	Worklist ordering configuration.

	Notes:
	- newest_first: break severity ties by latest start instead of earliest.
	- include_completed: keep surgeries with an end time in the worklist.
	"""

	newest_first: bool = False
	include_completed: bool = False


class DataConfig(BaseModel):
	"""
	Data source locations.

	When operations_path is unset the bundled sample rows are served.
	"""

	operations_path: Optional[Path] = None
	baselines_path: Optional[Path] = None
	reasons_path: Optional[Path] = None


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.
	"""

	model_config = SettingsConfigDict(
		env_prefix="ORMON_",
		env_file=".env",
		env_nested_delimiter="__",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	anomaly: AnomalyConfig = AnomalyConfig()
	worklist: WorklistConfig = WorklistConfig()
	data: DataConfig = DataConfig()


config = Config()
