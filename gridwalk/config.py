"""
Configuration for masked traversals

Named presets select the cursor kind and its options, so experiments can
switch walk order without touching code.
"""

from dataclasses import dataclass

from .cursors import get_cursor_kind

# Options each cursor kind accepts beyond (grid, region)
_KIND_OPTIONS = {
    "region": (),
    "scanline": (),
    "sequential": (),
    "subsampled": ("subsample_factor",),
    "random": ("number_of_samples", "seed"),
    "random_non_repeating": ("seed",),
}


@dataclass
class TraversalConfig:
    """Configuration for a masked traversal."""

    # === Walk Order ===
    cursor_kind: str = "region"   # key of gridwalk.cursors.CURSOR_KINDS
    reverse: bool = False         # walk from the last included position back to begin

    # === Random Kinds ===
    seed: int = 0
    number_of_samples: int | None = None  # None = one draw per region position

    # === Subsampling ===
    subsample_factor: int = 1

    def resolve_cursor_kind(self) -> type:
        return get_cursor_kind(self.cursor_kind)

    def cursor_options(self) -> dict:
        """Keyword arguments understood by the selected cursor kind."""
        self.resolve_cursor_kind()
        return {name: getattr(self, name) for name in _KIND_OPTIONS.get(self.cursor_kind, ())}


@dataclass
class ScanlineConfig(TraversalConfig):
    cursor_kind: str = "scanline"


@dataclass
class SubsampledConfig(TraversalConfig):
    """Every other index along each axis."""

    cursor_kind: str = "subsampled"
    subsample_factor: int = 2


@dataclass
class RandomConfig(TraversalConfig):
    """Draws with replacement; forward-only like SequentialConfig."""

    cursor_kind: str = "random"
    seed: int = 42


@dataclass
class NonRepeatingConfig(TraversalConfig):
    cursor_kind: str = "random_non_repeating"
    seed: int = 42


@dataclass
class SequentialConfig(TraversalConfig):
    """Forward-only stream; cannot be used with reverse=True."""

    cursor_kind: str = "sequential"


@dataclass
class ReverseConfig(TraversalConfig):
    reverse: bool = True


# Default configurations
CONFIGS = {
    "default": TraversalConfig(),
    "scanline": ScanlineConfig(),
    "subsampled": SubsampledConfig(),
    "random": RandomConfig(),
    "non_repeating": NonRepeatingConfig(),
    "sequential": SequentialConfig(),
    "reverse": ReverseConfig(),
}


def get_config(name="default"):
    """
    Get configuration by name.

    Args:
        name: Configuration name (see CONFIGS)

    Returns:
        config: TraversalConfig instance
    """
    if name not in CONFIGS:
        raise ValueError(f"Unknown config: {name}. Available: {list(CONFIGS.keys())}")

    return CONFIGS[name]
