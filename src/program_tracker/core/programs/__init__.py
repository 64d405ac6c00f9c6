"""
Program definitions for program-tracker.

Programs, their schedules and workout templates are authored as YAML
files and loaded into a ProgramCatalog (see loader.py).
"""

from .base import PhaseBand, Program, ProgramSchedule, TemplateExercise, WorkoutTemplate
from .catalog import ProgramCatalog

__all__ = [
    "PhaseBand",
    "Program",
    "ProgramCatalog",
    "ProgramSchedule",
    "TemplateExercise",
    "WorkoutTemplate",
]
