"""Loads the desired-state JSON file."""

import json
from dataclasses import dataclass, fields
from pathlib import Path

from rdsreconcile.models import DesiredInstance, Ensure

_FIELDS = {f.name for f in fields(DesiredInstance)}


class ConfigError(ValueError):
    """The desired-state file is malformed."""


@dataclass(frozen=True)
class DesiredState:
    instances: list[DesiredInstance]
    regions: list[str]

    def scope_regions(self) -> list[str]:
        """Declared regions, else the regions instances are declared in."""
        if self.regions:
            return list(self.regions)
        seen: list[str] = []
        for inst in self.instances:
            if inst.region not in seen:
                seen.append(inst.region)
        return seen


def load_desired_state(path: str | Path) -> DesiredState:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"{path}: cannot read: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: invalid JSON: {e}") from e
    return parse_desired_state(data)


def parse_desired_state(data: dict) -> DesiredState:
    if not isinstance(data, dict):
        raise ConfigError("Desired state must be a JSON object")

    regions = data.get("regions") or []
    if not isinstance(regions, list) or not all(isinstance(r, str) for r in regions):
        raise ConfigError("'regions' must be a list of strings")

    entries = data.get("instances") or []
    if not isinstance(entries, list):
        raise ConfigError("'instances' must be a list")

    instances = [parse_instance(entry, index) for index, entry in enumerate(entries)]

    seen = set()
    for inst in instances:
        if inst.name in seen:
            raise ConfigError(f"Duplicate instance name {inst.name!r}")
        seen.add(inst.name)

    return DesiredState(instances=instances, regions=regions)


def parse_instance(entry: dict, index: int = 0) -> DesiredInstance:
    where = f"instances[{index}]"
    if not isinstance(entry, dict):
        raise ConfigError(f"{where}: expected an object")

    unknown = sorted(set(entry) - _FIELDS)
    if unknown:
        raise ConfigError(f"{where}: unknown key(s) {', '.join(unknown)}")

    for key in ("name", "region"):
        if not entry.get(key):
            raise ConfigError(f"{where}: '{key}' is required")

    values = dict(entry)
    try:
        values["ensure"] = Ensure(values.get("ensure", Ensure.PRESENT))
    except ValueError:
        raise ConfigError(f"{where}: ensure must be 'present' or 'absent'") from None

    tags = values.get("tags")
    if tags is not None:
        if not isinstance(tags, dict):
            raise ConfigError(f"{where}: 'tags' must be an object")
        values["tags"] = {str(k): str(v) for k, v in tags.items()}

    groups = values.get("security_groups")
    if isinstance(groups, list):
        values["security_groups"] = tuple(groups)

    if values["ensure"] == Ensure.ABSENT and not (
        values.get("skip_final_snapshot") or values.get("final_db_snapshot_identifier")
    ):
        raise ConfigError(
            f"{where}: final_db_snapshot_identifier is required unless skip_final_snapshot is set"
        )

    return DesiredInstance(**values)
