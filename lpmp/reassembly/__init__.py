"""
Fragment reassembly for business SDUs that span several transmissions.
"""
from lpmp.reassembly.reassembler import (
    DEFAULT_REASSEMBLY_TIMEOUT,
    AssembledUnit,
    FragmentCache,
    FragmentReassembler,
    TimerFactory,
    TimerHandle,
    thread_timer,
)

__all__ = [
    "DEFAULT_REASSEMBLY_TIMEOUT",
    "AssembledUnit",
    "FragmentCache",
    "FragmentReassembler",
    "TimerFactory",
    "TimerHandle",
    "thread_timer",
]
