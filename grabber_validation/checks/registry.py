"""Stage registration and ordering."""

from typing import Any, Dict, Iterable, List, Tuple, Type

from grabber_validation.exceptions import StageRegistrationError
from .base import Stage

# Internal registry: (position, stage_id, stage_cls, defaults)
_REGISTRY: List[Tuple[int, str, Type[Stage], Dict[str, Any]]] = []


def register(*, position: int, stage_id: str = None, **default_params):
    """Decorator to register a pipeline stage at a fixed position."""

    def _decorator(stage_cls: Type[Stage]):
        sid = stage_id or stage_cls.__name__
        for pos, existing_id, _, _ in _REGISTRY:
            if pos == position:
                raise StageRegistrationError(
                    f"Position {position} already taken by stage {existing_id}"
                )
            if existing_id == sid:
                raise StageRegistrationError(f"Stage {sid} already registered")
        _REGISTRY.append((position, sid, stage_cls, dict(default_params)))
        return stage_cls

    return _decorator


def stages() -> Iterable[Stage]:
    """Fresh instances of all registered stages, in pipeline order."""
    for pos, sid, cls, params in sorted(_REGISTRY, key=lambda entry: entry[0]):
        yield cls(sid, pos, **params)


def list_registered() -> List[Dict[str, Any]]:
    """List all registered stages in pipeline order."""
    return [
        {
            "stage_id": sid,
            "position": pos,
            "stage_class": cls.__name__,
            "params": params,
        }
        for pos, sid, cls, params in sorted(_REGISTRY, key=lambda entry: entry[0])
    ]
