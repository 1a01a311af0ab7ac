"""Interactive API key selection used as the credential prompt."""
import asyncio
import logging
from typing import Optional

from PyQt6.QtWidgets import QDialog, QInputDialog, QLineEdit, QWidget

logger = logging.getLogger(__name__)

BILLING_URL = "https://ai.google.dev/gemini-api/docs/billing"


async def prompt_for_api_key(parent: Optional[QWidget] = None) -> Optional[str]:
    """
    Ask for an API key without blocking the event loop.

    Returns:
        The entered key, or None if the dialog was dismissed
    """
    dialog = QInputDialog(parent)
    dialog.setWindowTitle("Select API Key")
    dialog.setLabelText("Video generation requires a Gemini API key:")
    dialog.setTextEchoMode(QLineEdit.EchoMode.Password)

    future = asyncio.get_running_loop().create_future()

    def on_finished(result: int):
        if future.done():
            return
        accepted = result == QDialog.DialogCode.Accepted
        future.set_result(dialog.textValue() if accepted else None)

    dialog.finished.connect(on_finished)
    dialog.open()
    try:
        return await future
    finally:
        dialog.deleteLater()
