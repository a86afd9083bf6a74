"""Container test pipeline for the greeting service."""

from .main import GreetingPipeline as GreetingPipeline
