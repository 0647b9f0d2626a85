# src/chip_core_tracer/arch/qch/__init__.py
"""
QCH Virtual Machine Architecture Package
"""
from .cpu import QchCpu
from .state import QchCpuState
