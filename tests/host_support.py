"""Reference host collaborators for the stand picture plugins.

The editor never runs inside the game engine; these classes pin down the
interfaces the runtime plugins consume.  The engine exposes small hooks (an
equip-change notification, a per-actor offset store) and components
register against them, instead of wrapping engine methods.
``HostContext`` bundles the state for one game session and is passed
explicitly to whoever needs it.
"""

import logging

log = logging.getLogger(__name__)

SYNC_FORCE = "force"    # clone the item onto the partner
SYNC_NORMAL = "normal"  # regular equip, consumes from the party inventory


class ActorOffsetStore:
    """Persisted per-actor stand picture offset (x, y)."""

    def __init__(self):
        self._offsets = {}

    def get(self, actor_id: int) -> tuple:
        return self._offsets.get(actor_id, (0, 0))

    def set(self, actor_id: int, x, y):
        self._offsets[actor_id] = (x, y)

    def reset_all(self):
        """Put every actor back at (0, 0), e.g. when an event ends."""
        self._offsets.clear()


class GameStateStore:
    """Switch and variable values, addressed by id."""

    def __init__(self):
        self._switches = {}
        self._variables = {}

    def switch(self, switch_id: int) -> bool:
        return self._switches.get(switch_id, False)

    def set_switch(self, switch_id: int, value: bool):
        if switch_id > 0:
            self._switches[switch_id] = bool(value)

    def variable(self, variable_id: int):
        return self._variables.get(variable_id, 0)

    def set_variable(self, variable_id: int, value):
        if variable_id > 0:
            self._variables[variable_id] = value


class EquipSyncRegistry:
    """Unordered actor pairs whose equipment is kept identical."""

    def __init__(self):
        self._pairs = []   # [(a, b)] in registration order

    def register(self, actor1: int, actor2: int):
        self.unregister(actor1, actor2)
        self._pairs.append((actor1, actor2))

    def unregister(self, actor1: int, actor2: int):
        self._pairs = [p for p in self._pairs
                       if p not in ((actor1, actor2), (actor2, actor1))]

    def unregister_all(self):
        self._pairs = []

    def partners(self, actor_id: int) -> list:
        """Actors bound to *actor_id*, deduplicated, in registration order."""
        out = []
        for a, b in self._pairs:
            other = b if a == actor_id else a if b == actor_id else None
            if other is not None and other not in out:
                out.append(other)
        return out

    def __len__(self) -> int:
        return len(self._pairs)


class EquipSync:
    """Mirrors equipment changes between bound actors.

    *actor_lookup* maps an actor id to the host's actor object (or None).
    Actor objects provide ``equips()``, ``equip_slots()``, ``change_equip``
    and ``force_change_equip``.  Changes made by the sync itself re-enter the
    host's equip hook; the in-flight flag stops them from bouncing back.
    """

    def __init__(self, registry: EquipSyncRegistry, actor_lookup,
                 method: str = SYNC_FORCE):
        if method not in (SYNC_FORCE, SYNC_NORMAL):
            raise ValueError(f"Unknown sync method: {method!r}")
        self.registry = registry
        self.actor_lookup = actor_lookup
        self.method = method
        self._syncing = False

    def _apply(self, actor, slot_id: int, item):
        if self.method == SYNC_NORMAL:
            actor.change_equip(slot_id, item)
        else:
            actor.force_change_equip(slot_id, item)

    def bind(self, actor1: int, actor2: int) -> bool:
        """Bind two actors and copy actor1's equipment onto actor2."""
        if not actor1 or not actor2 or actor1 == actor2:
            return False
        self.registry.register(actor1, actor2)

        source = self.actor_lookup(actor1)
        target = self.actor_lookup(actor2)
        if source is None or target is None:
            return True
        self._syncing = True
        try:
            equips = source.equips()
            for slot_id in range(len(source.equip_slots())):
                item = equips[slot_id] if slot_id < len(equips) else None
                self._apply(target, slot_id, item)
        finally:
            self._syncing = False
        return True

    def unbind(self, actor1: int, actor2: int):
        self.registry.unregister(actor1, actor2)

    def unbind_all(self):
        self.registry.unregister_all()

    def on_equip_changed(self, actor_id: int, slot_id: int, item):
        """Equip-change hook handler: push the change to every partner."""
        if self._syncing:
            return
        partners = self.registry.partners(actor_id)
        if not partners:
            return
        self._syncing = True
        try:
            for partner_id in partners:
                partner = self.actor_lookup(partner_id)
                if partner is not None:
                    self._apply(partner, slot_id, item)
        finally:
            self._syncing = False


class HostContext:
    """Session-scoped host state, created at session start."""

    def __init__(self, actor_lookup=None, sync_method: str = SYNC_FORCE):
        self.offsets = ActorOffsetStore()
        self.game_state = GameStateStore()
        self.equip_pairs = EquipSyncRegistry()
        self.equip_sync = EquipSync(self.equip_pairs, actor_lookup or (lambda _id: None),
                                    sync_method)
        self._equip_handlers = []
        self.running = False

    def start(self):
        self._equip_handlers = [self.equip_sync.on_equip_changed]
        self.running = True
        log.debug("Host context started")

    def shutdown(self):
        self._equip_handlers = []
        self.equip_pairs.unregister_all()
        self.offsets.reset_all()
        self.running = False
        log.debug("Host context shut down")

    def add_equip_handler(self, handler):
        self._equip_handlers.append(handler)

    def notify_equip_changed(self, actor_id: int, slot_id: int, item):
        """Called by the host after any equipment change."""
        for handler in list(self._equip_handlers):
            handler(actor_id, slot_id, item)
