"""
Program Planner - LLM Providers
"""
from program_planner.core.providers.amplify import AmplifyAPIError, AmplifyProvider

__all__ = [
    "AmplifyAPIError",
    "AmplifyProvider",
]
