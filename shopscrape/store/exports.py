"""Write export payloads to disk."""
import logging
from pathlib import Path
from typing import Union
import aiofiles

from shopscrape.config import EXPORT_DIR

logger = logging.getLogger(__name__)


def default_export_path(filename: str, export_dir: Path = EXPORT_DIR) -> Path:
    return export_dir / filename


async def save_export(payload: Union[str, bytes], path: Path) -> Path:
    """Write a CSV/JSON string or xlsx bytes to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = payload.encode("utf-8") if isinstance(payload, str) else payload
    async with aiofiles.open(path, "wb") as f:
        await f.write(data)
    logger.info(f"Saved export to {path} ({len(data)} bytes)")
    return path
