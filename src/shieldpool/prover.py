"""Proving-subsystem interface and the snarkjs adapter.

Proof generation is expensive and happens out of process. Callers must only
reach this module after the membership witness passed every ledger check.
"""

import asyncio
import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Protocol

from shieldpool.config.schema import ProverConfig
from shieldpool.errors import ProofGenerationFailure
from shieldpool.withdraw.builder import ProofInputs, WithdrawalRequestBuilder

logger = logging.getLogger(__name__)


class Prover(Protocol):
    """Protocol for proving backends."""

    async def prove(self, inputs: ProofInputs) -> str:
        """Generate a withdrawal proof.

        Args:
            inputs: Public and private circuit inputs

        Returns:
            Proof serialized in the ledger's layout (``0x`` + hex)

        Raises:
            ProofGenerationFailure: If no proof could be produced
        """
        ...


def _to_int(value: Any) -> int:
    if isinstance(value, str) and value[:2] in ("0x", "0X"):
        return int(value, 16)
    return int(value)


def format_solidity_proof(proof: dict[str, Any]) -> str:
    """Serialize a Groth16 proof document into the ledger's word layout.

    Order: ``a0, a1, b01, b00, b11, b10, c0, c1``; each a 32-byte big-endian
    word. The G2 coordinates are swapped because the verifier expects the
    imaginary part first.

    Raises:
        ProofGenerationFailure: If the document is not a Groth16 proof.
    """
    try:
        words = [
            proof["pi_a"][0],
            proof["pi_a"][1],
            proof["pi_b"][0][1],
            proof["pi_b"][0][0],
            proof["pi_b"][1][1],
            proof["pi_b"][1][0],
            proof["pi_c"][0],
            proof["pi_c"][1],
        ]
        return "0x" + "".join(_to_int(w).to_bytes(32, "big").hex() for w in words)
    except (KeyError, IndexError, TypeError, ValueError, OverflowError) as e:
        raise ProofGenerationFailure(f"Malformed proof document: {e}") from e


class SnarkjsProver:
    """Runs ``snarkjs groth16 fullprove`` in a private temporary directory.

    The directory holding the input document is removed as soon as the
    proof has been read back.
    """

    def __init__(self, config: ProverConfig | None = None) -> None:
        self.config = config or ProverConfig()

    def _command(self, workdir: Path) -> list[str]:
        return [
            self.config.snarkjs_path,
            "groth16",
            "fullprove",
            str(workdir / "input.json"),
            self.config.circuit_wasm,
            self.config.proving_key,
            str(workdir / "proof.json"),
            str(workdir / "public.json"),
        ]

    async def prove(self, inputs: ProofInputs) -> str:
        document = WithdrawalRequestBuilder.circuit_input(inputs)

        with tempfile.TemporaryDirectory(prefix="shieldpool-") as tmp:
            workdir = Path(tmp)
            (workdir / "input.json").write_text(json.dumps(document))

            logger.info("Generating proof with %s", self.config.snarkjs_path)
            try:
                process = await asyncio.create_subprocess_exec(
                    *self._command(workdir),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise ProofGenerationFailure(f"Cannot start prover: {e}") from e

            try:
                _, stderr = await asyncio.wait_for(
                    process.communicate(),
                    timeout=self.config.timeout,
                )
            except TimeoutError as e:
                process.kill()
                await process.wait()
                msg = f"Prover timed out after {self.config.timeout} seconds"
                raise ProofGenerationFailure(msg) from e

            if process.returncode != 0:
                detail = (stderr or b"").decode("utf-8", errors="replace").strip()[:500]
                msg = f"Prover exited with code {process.returncode}: {detail}"
                raise ProofGenerationFailure(msg)

            try:
                proof = json.loads((workdir / "proof.json").read_text())
            except (OSError, ValueError) as e:
                raise ProofGenerationFailure(f"Prover produced no readable proof: {e}") from e

        logger.info("Proof generated")
        return format_solidity_proof(proof)
