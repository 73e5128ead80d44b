"""
Services package for the PDF field extraction application.

Contains:
- ai: OpenAI integration, response recovery and record validation
- config_registry / config_editor: extraction configs and their editing
- upload_queue: PDF intake checks and the pending queue
- orchestrator / workspace: processing passes and session state
- results_table / exporter: display rendering and file exports
"""

from .ai import AIService
from .config_registry import ConfigRegistry
from .upload_queue import UploadQueue
from .workspace import Workspace

__all__ = ["AIService", "ConfigRegistry", "UploadQueue", "Workspace"]
