"""
Call descriptors and the routing decision.

Every store operation the router exposes is described once here: its
result shape (which selects decoration behaviour) and where a caller may
put the ``useOnlineStore`` override in the argument list. The router reads
this table instead of hard-coding positions per method.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..protocol import BYPASS, USE_ONLINE_STORE, ShapeClass


@dataclass(frozen=True)
class CallDescriptor:
    """Routing metadata for one store operation.

    At most one of ``override_index`` and ``options_index`` is set; with
    neither the operation routes on global online state alone.

    Attributes:
        name: Operation (method) name
        shape: Result shape used for decoration
        override_index: Position of a trailing boolean override
        options_index: Position of a mapping that may carry ``useOnlineStore``
        strip_override: Remove ``useOnlineStore`` from the mapping before forwarding
        merge_bypass: Merge ``{"bypass": True}`` into the mapping on the online
            path when offline support is disabled
    """

    name: str
    shape: ShapeClass = ShapeClass.NONE
    override_index: int | None = None
    options_index: int | None = None
    strip_override: bool = False
    merge_bypass: bool = False

    @property
    def decorated(self) -> bool:
        return self.shape is not ShapeClass.NONE

    def extract_override(self, args: tuple[Any, ...]) -> tuple[Any, tuple[Any, ...]]:
        """Read the override from an argument list.

        A trailing positional override is returned as given. A
        ``useOnlineStore`` value read from an options mapping is reduced to a
        bool: ``True`` stays True and any other non-None value is False.

        Returns:
            ``(override, args)`` where override is None when absent and args
            is the list to forward. When ``strip_override`` is set and the
            options mapping holds the key, args carries a copy of the mapping
            without it; the caller's mapping is never modified.
        """
        if self.override_index is not None:
            if len(args) > self.override_index:
                return args[self.override_index], args
            return None, args

        if self.options_index is None or len(args) <= self.options_index:
            return None, args

        options = args[self.options_index]
        if not isinstance(options, Mapping):
            return None, args

        override = options.get(USE_ONLINE_STORE)
        if override is not None:
            # Only a real True forces the online store from an options mapping
            override = override is True
        if self.strip_override and USE_ONLINE_STORE in options:
            stripped = {k: v for k, v in options.items() if k != USE_ONLINE_STORE}
            args = _replace(args, self.options_index, stripped)
        return override, args

    def with_bypass(self, args: tuple[Any, ...]) -> tuple[Any, ...]:
        """Return args with the bypass flag merged into the options mapping.

        Keys already in the caller's mapping win over the bypass flag. An
        options argument omitted exactly at its slot is appended; a call that
        stops short of the slot is left alone.
        """
        index = self.options_index
        if not self.merge_bypass or index is None:
            return args

        if len(args) == index:
            return (*args, {BYPASS: True})
        if len(args) < index:
            return args

        options = args[index]
        if options is None:
            merged: dict[str, Any] = {BYPASS: True}
        elif isinstance(options, Mapping):
            merged = {BYPASS: True, **options}
        else:
            return args
        return _replace(args, index, merged)


def _replace(args: tuple[Any, ...], index: int, value: Any) -> tuple[Any, ...]:
    return (*args[:index], value, *args[index + 1 :])


def decide(override: Any, online: bool) -> bool:
    """Return True to route to the online store.

    An explicit override wins in both directions; only None defers to the
    global online state.
    """
    if override is None:
        return bool(online)
    return bool(override)


def _descriptors(*items: CallDescriptor) -> dict[str, CallDescriptor]:
    return {item.name: item for item in items}


CALL_DESCRIPTORS: dict[str, CallDescriptor] = _descriptors(
    # Query-shaped: decorated on the online path
    CallDescriptor("find_all", ShapeClass.MULTIPLE, options_index=1, merge_bypass=True),
    CallDescriptor("find_record", ShapeClass.SINGLE, options_index=2, merge_bypass=True),
    CallDescriptor("reload_record", ShapeClass.SINGLE),
    CallDescriptor("query", ShapeClass.MULTIPLE, options_index=1, strip_override=True),
    CallDescriptor("query_record", ShapeClass.SINGLE, options_index=1, strip_override=True),
    # Pass-through: forwarded verbatim
    CallDescriptor("create_record", override_index=2),
    CallDescriptor("delete_record", override_index=1),
    CallDescriptor("get_reference", override_index=2),
    CallDescriptor("has_record_for_id", override_index=2),
    CallDescriptor("normalize", override_index=2),
    CallDescriptor("peek_all", override_index=1),
    CallDescriptor("peek_record", override_index=2),
    CallDescriptor("push", override_index=1),
    CallDescriptor("push_payload", override_index=2),
    CallDescriptor("record_is_loaded", override_index=2),
    CallDescriptor("unload_all", override_index=1),
    CallDescriptor("unload_record", override_index=1),
    # Lookups: override is a real extra parameter, never forwarded
    CallDescriptor("adapter_for", override_index=1),
    CallDescriptor("serializer_for", override_index=1),
)
