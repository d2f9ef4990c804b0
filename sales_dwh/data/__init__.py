"""
Data Generation Module
"""
from .generators import GeneratorConfig, SourceDataGenerator, generate_sources

__all__ = [
    "GeneratorConfig",
    "SourceDataGenerator",
    "generate_sources",
]
