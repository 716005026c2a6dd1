"""
Import and dependency collection.

Render code records what a file uses while the body is being produced;
the import block is formatted afterwards from what was recorded. Modules
keep first-use order and symbols are sorted, so identical input gives
identical import blocks.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass
class ModuleImport:
    module: str
    symbols: List[str] = field(default_factory=list)
    type_symbols: List[str] = field(default_factory=list)
    # Whole-module import (``import x`` / ``use x;``)
    whole: bool = False

    @property
    def is_type_only(self) -> bool:
        return not self.symbols and not self.whole and bool(self.type_symbols)


class ImportCollector:
    """Records the modules and symbols a generated file refers to."""

    def __init__(self):
        self._modules: Dict[str, ModuleImport] = {}

    def _module(self, module: str) -> ModuleImport:
        if module not in self._modules:
            self._modules[module] = ModuleImport(module)
        return self._modules[module]

    def add(self, module: str, symbol: Optional[str] = None) -> str:
        """Record ``symbol`` from ``module`` (or the whole module) and return its name."""
        entry = self._module(module)
        if symbol is None:
            entry.whole = True
            return module
        if symbol not in entry.symbols:
            entry.symbols.append(symbol)
        if symbol in entry.type_symbols:
            entry.type_symbols.remove(symbol)
        return symbol

    def add_type(self, module: str, symbol: str) -> str:
        """Record a symbol only used in type positions."""
        entry = self._module(module)
        if symbol not in entry.symbols and symbol not in entry.type_symbols:
            entry.type_symbols.append(symbol)
        return symbol

    def merge(self, other: "ImportCollector"):
        for module in other.modules():
            if module.whole:
                self.add(module.module)
            for symbol in module.symbols:
                self.add(module.module, symbol)
            for symbol in module.type_symbols:
                self.add_type(module.module, symbol)

    def modules(self) -> List[ModuleImport]:
        """Recorded modules in first-use order, with sorted symbol lists."""
        return [
            ModuleImport(
                module=entry.module,
                symbols=sorted(entry.symbols),
                type_symbols=sorted(entry.type_symbols),
                whole=entry.whole,
            )
            for entry in self._modules.values()
        ]

    def __bool__(self) -> bool:
        return bool(self._modules)

    def __contains__(self, module: str) -> bool:
        return module in self._modules


@dataclass(frozen=True)
class Dependency:
    """A package the generated project depends on."""

    name: str
    version: str
    features: Tuple[str, ...] = ()
    dev: bool = False


class DependencySet:
    """Package dependencies of a generated project, deduplicated by name.

    Registering a known name again merges its features.
    """

    def __init__(self):
        self._deps: Dict[str, Dependency] = {}

    def add(
        self,
        name: str,
        version: str,
        features: Tuple[str, ...] = (),
        dev: bool = False,
    ) -> Dependency:
        existing = self._deps.get(name)
        if existing is not None:
            merged = existing.features + tuple(
                f for f in features if f not in existing.features
            )
            dependency = Dependency(name, existing.version, merged, existing.dev and dev)
        else:
            dependency = Dependency(name, version, tuple(features), dev)
        self._deps[name] = dependency
        return dependency

    def runtime(self) -> List[Dependency]:
        return [dep for dep in self._deps.values() if not dep.dev]

    def dev(self) -> List[Dependency]:
        return [dep for dep in self._deps.values() if dep.dev]

    def __iter__(self):
        return iter(list(self._deps.values()))

    def __len__(self) -> int:
        return len(self._deps)

    def __contains__(self, name: str) -> bool:
        return name in self._deps
