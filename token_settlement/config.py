"""
Configuration management for the settlement core.
"""
import json
import os
from dataclasses import dataclass, asdict

from .constants import (
    COMPRESSED_TOKEN_PROGRAM_ID,
    OPERATION_MIXED_PAYMENT,
    OPERATION_Z_DIRECT,
    PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)


@dataclass
class ProgramConfig:
    """Program identities, hex encoded."""
    program_id: str = PROGRAM_ID.hex()
    token_program_id: str = TOKEN_PROGRAM_ID.hex()
    compressed_token_program_id: str = COMPRESSED_TOKEN_PROGRAM_ID.hex()
    system_program_id: str = SYSTEM_PROGRAM_ID.hex()

    @property
    def program_key(self) -> bytes:
        return bytes.fromhex(self.program_id)

    @property
    def token_program_key(self) -> bytes:
        return bytes.fromhex(self.token_program_id)

    @property
    def compressed_token_program_key(self) -> bytes:
        return bytes.fromhex(self.compressed_token_program_id)

    @property
    def system_program_key(self) -> bytes:
        return bytes.fromhex(self.system_program_id)


@dataclass
class SplitConfig:
    """
    Split ratios per operation type.

    Each entry maps an operation type to [org_numerator, org_denominator];
    the pool receives the remainder. The keys form the operation allow-list.
    """
    ratios: dict = None

    def __post_init__(self):
        if self.ratios is None:
            self.ratios = {
                OPERATION_MIXED_PAYMENT: [100, 120],
                OPERATION_Z_DIRECT: [100, 120],
            }
        for operation_type, (numerator, denominator) in self.ratios.items():
            if denominator <= 0 or numerator < 0 or numerator > denominator:
                raise ValueError(f"Invalid split ratio for {operation_type}: {numerator}/{denominator}")


@dataclass
class GateConfig:
    """Operational gates."""
    pause_gates_direct_burn: bool = False


@dataclass
class BudgetConfig:
    """Compute-unit ceilings per operation."""
    split_transfer: int = 30_000
    burn_tokens: int = 10_000
    burn_from_company: int = 10_000


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""
    host: str = "127.0.0.1"
    port: int = 9090


@dataclass
class Config:
    """Main configuration."""
    program: ProgramConfig
    split: SplitConfig
    gates: GateConfig
    budgets: BudgetConfig
    monitoring: MonitoringConfig

    @classmethod
    def default(cls) -> 'Config':
        """Create default configuration."""
        return cls(
            program=ProgramConfig(),
            split=SplitConfig(),
            gates=GateConfig(),
            budgets=BudgetConfig(),
            monitoring=MonitoringConfig()
        )

    @classmethod
    def from_file(cls, path: str) -> 'Config':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)

        return cls(
            program=ProgramConfig(**data.get('program', {})),
            split=SplitConfig(**data.get('split', {})),
            gates=GateConfig(**data.get('gates', {})),
            budgets=BudgetConfig(**data.get('budgets', {})),
            monitoring=MonitoringConfig(**data.get('monitoring', {}))
        )

    def to_file(self, path: str):
        """Save configuration to JSON file."""
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'program': asdict(self.program),
            'split': asdict(self.split),
            'gates': asdict(self.gates),
            'budgets': asdict(self.budgets),
            'monitoring': asdict(self.monitoring)
        }
