"""Container for compiled Epilog programs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ipdl_epilog.epilog.serializer import Form, grindem

DECLARATIONS_HEADER = "% Declarations"
CHAINS_HEADER = "% Chains"


@dataclass
class EpilogProgram:
    """Compiled Epilog program.

    Each section is a list of blocks, one block per declaration or chain,
    and each block is the list of forms that declaration or chain produced.

    Attributes:
        declarations: Blocks compiled from IPDL declarations
        chains: Blocks compiled from IPDL chains
    """

    declarations: list[list[Form]] = field(default_factory=list)
    chains: list[list[Form]] = field(default_factory=list)

    def forms(self) -> list[Form]:
        """All forms in output order."""
        return [form for block in self.declarations + self.chains for form in block]

    @property
    def text(self) -> str:
        """Epilog source: a commented section per part, blocks blank-line separated."""
        return (
            f"{DECLARATIONS_HEADER}\n\n"
            + _join_blocks(self.declarations)
            + f"\n\n{CHAINS_HEADER}\n\n"
            + _join_blocks(self.chains)
        )

    def __str__(self) -> str:
        return self.text


def _join_blocks(blocks: list[list[Form]]) -> str:
    return "\n\n".join(grindem(block) for block in blocks)


def write_program(program: EpilogProgram, output_path: Path) -> Path:
    """Write a compiled program to disk.

    Args:
        program: Compiled program
        output_path: Destination file; parent directories are created

    Returns:
        The path written to
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(program.text + "\n", encoding="utf-8")
    return output_path
