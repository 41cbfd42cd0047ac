from dataclasses import dataclass


@dataclass(frozen=True)
class ExecutionContext:
    """
    What the host supplies to every registry operation: who is calling and at which block.
    Expiry checks never use a block_height behind the stored host counter.
    """

    caller: str
    block_height: int
