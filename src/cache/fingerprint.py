# src/cache/fingerprint.py — v3
"""Composite cache keys built from revision identities.

A fingerprint is positional concatenation, never a hash: ``scala-ide/A/B/C/D/E``
is equal to another key only if every component is equal and in the same
slot. Components are validated so the separator can never appear inside one,
which keeps the mapping from inputs to keys (and to cache paths) injective.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from uberbuild.cache.models import SEPARATOR, Fingerprint, FingerprintComponent

SIGNED_SUFFIX = "-S"

# Separators, whitespace and NUL are never valid inside a component.
_FORBIDDEN = re.compile(r"[/\\\s\x00]")


class FingerprintError(ValueError):
    """Raised when a stage name or component cannot be used in a cache key."""


def validate_segment(value: str, label: str = "component") -> str:
    """Return value if it can be used as a key segment, raise FingerprintError otherwise.

    Segments starting with "." are reserved for in-progress cache entries (and
    rule out "." and "..").
    """
    if not isinstance(value, str) or not value:
        raise FingerprintError(f"Empty value for fingerprint {label}")
    if _FORBIDDEN.search(value):
        raise FingerprintError(
            f"Invalid character in fingerprint {label} {value!r} "
            f"(separator {SEPARATOR!r}, backslash and whitespace are not allowed)"
        )
    if value.startswith("."):
        raise FingerprintError(f"Fingerprint {label} {value!r} must not start with '.'")
    return value


class FingerprintBuilder:
    """Ordered builder of labeled fingerprint components.

    Usage:
        FingerprintBuilder("scala-ide").add("ide", ide_rev).add("scala", scala_uid)
            .signed(sign_artifacts).build()

    The first component added is the stage's own revision; ``signed(True)``
    folds the signing mode into it.
    """

    def __init__(self, stage: str) -> None:
        self._stage = validate_segment(stage, "stage")
        self._components: list[FingerprintComponent] = []
        self._signed = False

    def add(self, label: str, value: str) -> FingerprintBuilder:
        self._components.append(
            FingerprintComponent(label=label, value=validate_segment(value, label))
        )
        return self

    def add_optional(self, label: str, value: str | None) -> FingerprintBuilder:
        """Add a component only when present; absent inputs leave no placeholder."""
        if value is not None:
            self.add(label, value)
        return self

    def extend(self, components: Iterable[FingerprintComponent]) -> FingerprintBuilder:
        for component in components:
            self.add(component.label, component.value)
        return self

    def signed(self, flag: bool = True) -> FingerprintBuilder:
        self._signed = flag
        return self

    def build(self) -> Fingerprint:
        components = list(self._components)
        if self._signed:
            if not components:
                raise FingerprintError(
                    f"Cannot mark fingerprint of {self._stage!r} as signed without a revision"
                )
            own = components[0]
            components[0] = FingerprintComponent(
                label=own.label, value=own.value + SIGNED_SUFFIX
            )
        return Fingerprint(stage=self._stage, components=tuple(components))


def fingerprint(
    stage: str,
    self_rev: str,
    deps: Sequence[str] = (),
    signed: bool = False,
) -> Fingerprint:
    """Functional shortcut: ``stage/self_rev[-S]/dep1/dep2/...``."""
    builder = FingerprintBuilder(stage).add("self", self_rev)
    for index, dep in enumerate(deps):
        builder.add(f"dep{index + 1}", dep)
    return builder.signed(signed).build()


# --- Stage layouts ---


def toolchain_fingerprint(ide_rev: str, scala_uid: str, sbt_uid: str) -> Fingerprint:
    return (
        FingerprintBuilder("toolchain")
        .add("ide", ide_rev)
        .add("scala", scala_uid)
        .add("sbt", sbt_uid)
        .build()
    )


def library_fingerprint(stage: str, library_rev: str, ide_rev: str, scala_uid: str) -> Fingerprint:
    """Auxiliary libraries (scala-refactoring, scalariform) built on the toolchain."""
    return (
        FingerprintBuilder(stage)
        .add(stage, library_rev)
        .add("ide", ide_rev)
        .add("scala", scala_uid)
        .build()
    )


def scala_ide_fingerprint(
    ide_rev: str,
    scala_uid: str,
    sbt_uid: str,
    refactoring_rev: str,
    scalariform_rev: str,
    signed: bool = False,
) -> Fingerprint:
    return (
        FingerprintBuilder("scala-ide")
        .add("ide", ide_rev)
        .add("scala", scala_uid)
        .add("sbt", sbt_uid)
        .add("scala-refactoring", refactoring_rev)
        .add("scalariform", scalariform_rev)
        .signed(signed)
        .build()
    )


def plugin_fingerprint(
    plugin: str,
    plugin_rev: str,
    scala_ide: Fingerprint,
    signed: bool = False,
) -> Fingerprint:
    """A plugin is keyed by its own revision plus everything the IDE it builds against is keyed by."""
    return (
        FingerprintBuilder(plugin)
        .add(plugin, plugin_rev)
        .extend(scala_ide.components)
        .signed(signed)
        .build()
    )


def product_fingerprint(
    product_rev: str,
    scala_ide: Fingerprint,
    plugin_revs: Sequence[tuple[str, str]],
    signed: bool = False,
) -> Fingerprint:
    """Fan-in key: IDE components, then the number of plugins, then each enabled plugin.

    plugin_revs must already be in registry order. The count keeps product
    keys prefix-free so one entry's directory never contains another's.
    """
    builder = (
        FingerprintBuilder("product")
        .add("product", product_rev)
        .extend(scala_ide.components)
        .add("plugins", str(len(plugin_revs)))
    )
    for name, rev in plugin_revs:
        builder.add(name, rev)
    return builder.signed(signed).build()
