"""Catalog of bookable resources."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

import yaml

from .errors import ReservationStorageError, ResourceKindMismatchError, UnknownResourceError

KIND_VEHICLE = "vehicle"
KIND_SPACE = "space"
RESOURCE_KINDS = (KIND_VEHICLE, KIND_SPACE)

_SECTION_KINDS = {"vehicles": KIND_VEHICLE, "spaces": KIND_SPACE}


@dataclass(frozen=True)
class Resource:
    resource_id: str
    display_name: str
    kind: str
    short_name: str | None = None
    plate_number: str | None = None
    capacity: str | None = None

    def __post_init__(self) -> None:
        if not self.resource_id or not self.resource_id.strip():
            raise ValueError("resource_id must not be empty")
        if self.kind not in RESOURCE_KINDS:
            raise ValueError(f"Unsupported resource kind: {self.kind!r}")

    @property
    def label(self) -> str:
        return self.short_name or self.display_name

    def to_dict(self) -> dict[str, str]:
        payload = {
            "id": self.resource_id,
            "name": self.display_name,
            "type": self.kind,
        }
        if self.short_name is not None:
            payload["shortName"] = self.short_name
        if self.plate_number is not None:
            payload["plateNumber"] = self.plate_number
        if self.capacity is not None:
            payload["capacity"] = self.capacity
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any], kind: str | None = None) -> "Resource":
        def _optional(key: str) -> str | None:
            value = data.get(key)
            return str(value) if value is not None else None

        return Resource(
            resource_id=str(data["id"]),
            display_name=str(data.get("name") or data["id"]),
            kind=str(kind or data.get("type", "")),
            short_name=_optional("shortName"),
            plate_number=_optional("plateNumber"),
            capacity=_optional("capacity"),
        )


DEFAULT_RESOURCES: tuple[Resource, ...] = (
    Resource("vehicle-1", "라떼 20노1803", KIND_VEHICLE, short_name="라떼", plate_number="20노1803"),
    Resource("vehicle-2", "핑크 128무6370", KIND_VEHICLE, short_name="핑크", plate_number="128무6370"),
    Resource("vehicle-3", "흰둥이 221무7249", KIND_VEHICLE, short_name="흰둥이", plate_number="221무7249"),
    Resource("vehicle-4", "베이지 379로5193", KIND_VEHICLE, short_name="베이지", plate_number="379로5193"),
    Resource("space-a", "회의실 20명", KIND_SPACE, short_name="회의실", capacity="20명"),
    Resource("space-b", "강당 60명", KIND_SPACE, short_name="강당", capacity="60명"),
)


class ResourceRegistry:
    """Read-only lookup over the seeded resource catalog."""

    def __init__(self, resources: Iterable[Resource] = DEFAULT_RESOURCES) -> None:
        self._resources: dict[str, Resource] = {}
        for resource in resources:
            if resource.resource_id in self._resources:
                raise ValueError(f"Duplicate resource id: {resource.resource_id}")
            self._resources[resource.resource_id] = resource

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources.values())

    def __len__(self) -> int:
        return len(self._resources)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._resources

    def get(self, resource_id: str) -> Resource | None:
        return self._resources.get(resource_id)

    def require(self, resource_id: str, kind: str | None = None) -> Resource:
        resource = self._resources.get(resource_id)
        if resource is None:
            raise UnknownResourceError(f"Unknown resource: {resource_id!r}")
        if kind is not None and resource.kind != kind:
            raise ResourceKindMismatchError(
                f"Resource {resource_id!r} is a {resource.kind}, not a {kind}."
            )
        return resource

    def by_kind(self, kind: str) -> list[Resource]:
        return [resource for resource in self._resources.values() if resource.kind == kind]

    def to_payload(self) -> dict[str, list[dict[str, str]]]:
        return {
            "vehicles": [resource.to_dict() for resource in self.by_kind(KIND_VEHICLE)],
            "spaces": [resource.to_dict() for resource in self.by_kind(KIND_SPACE)],
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ResourceRegistry":
        if not isinstance(payload, dict):
            raise ValueError("Resource catalog must be a mapping of 'vehicles' and 'spaces'.")

        resources: list[Resource] = []
        for section, kind in _SECTION_KINDS.items():
            rows = payload.get(section) or []
            if not isinstance(rows, list):
                raise ValueError(f"Resource section {section!r} must be a list.")
            for row in rows:
                if not isinstance(row, dict) or "id" not in row:
                    raise ValueError(f"Resource entry in {section!r} must be a mapping with an 'id'.")
                resources.append(Resource.from_dict(row, kind=kind))
        return cls(resources)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ResourceRegistry":
        path = Path(path)
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            raise ReservationStorageError(f"Failed to read resource catalog: {path}") from error
        return cls.from_payload(payload or {})
