"""Pydantic models for shieldpool.yaml configuration."""

from pydantic import BaseModel, Field, field_validator

from shieldpool.crypto.field import FIELD_SIZE
from shieldpool.note.codec import DEFAULT_PREFIX
from shieldpool.tree.merkle import DEFAULT_HEIGHT, MAX_HEIGHT, ZERO_VALUE


class NoteConfig(BaseModel):
    """Pool identity as written into note tokens."""

    prefix: str = Field(
        default=DEFAULT_PREFIX,
        description="Protocol tag at the start of every note",
        pattern=r"^\w+$",
    )
    asset: str = Field(default="eth", description="Asset symbol of the pool", pattern=r"^\w+$")
    denomination: str = Field(
        default="1",
        description="Fixed deposit amount in whole units (e.g. '0.1')",
        pattern=r"^\d+(\.\d+)?$",
    )
    network_id: int = Field(default=1, description="Network the pool is deployed on", ge=0)
    decimals: int = Field(default=18, description="Base-unit decimals of the asset", ge=0, le=36)


class TreeConfig(BaseModel):
    """Anonymity-set tree parameters. Must match the deployed pool."""

    height: int = Field(
        default=DEFAULT_HEIGHT,
        description="Merkle tree height (capacity 2**height deposits)",
        ge=1,
        le=MAX_HEIGHT,
    )
    zero_value: int = Field(default=ZERO_VALUE, description="Leaf value of empty positions", ge=0)
    root_history_size: int = Field(
        default=30,
        description="Number of recent roots the ledger accepts",
        ge=1,
    )

    @field_validator("zero_value")
    @classmethod
    def _zero_value_in_field(cls, v: int) -> int:
        if v >= FIELD_SIZE:
            raise ValueError("zero_value must be smaller than the field modulus")
        return v


class ProverConfig(BaseModel):
    """snarkjs prover configuration."""

    snarkjs_path: str = Field(default="snarkjs", description="snarkjs executable")
    circuit_wasm: str = Field(
        default="build/circuits/withdraw.wasm",
        description="Compiled withdrawal circuit (wasm witness generator)",
    )
    proving_key: str = Field(
        default="build/circuits/withdraw_final.zkey",
        description="Groth16 proving key",
    )
    timeout: int = Field(default=300, description="Proof generation timeout in seconds", ge=1)


class ShieldPoolConfig(BaseModel):
    """Root configuration schema for shieldpool."""

    note: NoteConfig = Field(default_factory=NoteConfig)
    tree: TreeConfig = Field(default_factory=TreeConfig)
    prover: ProverConfig = Field(default_factory=ProverConfig)
