"""Run configuration for the autowire command."""

import logging
from dataclasses import dataclass, replace
from pathlib import Path

__all__ = ["DEFAULT_OUTPUT_NAME", "WireConfig", "configure_logging"]

DEFAULT_OUTPUT_NAME = "app_gen.py"


@dataclass(frozen=True)
class WireConfig:
    """
    Options for a single generation run.

    Attributes:
        scan_dirs: Directories scanned for annotated declarations.
        out_dir: Directory the generated module is written to.
        output_name: File name of the generated module.
        verbose: Report discovered declarations and the initialization order.
    """

    scan_dirs: tuple[str, ...] = (".",)
    out_dir: str = "."
    output_name: str = DEFAULT_OUTPUT_NAME
    verbose: bool = False

    @property
    def output_path(self) -> Path:
        return Path(self.out_dir) / self.output_name

    def resolved(self) -> "WireConfig":
        """Copy of this config with every directory made absolute."""
        return replace(
            self,
            scan_dirs=tuple(str(Path(d).resolve()) for d in self.scan_dirs),
            out_dir=str(Path(self.out_dir).resolve()),
        )


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
    )
