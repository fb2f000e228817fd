"""
Persistence for synthesized narration audio.

Audio goes to Cloudinary when it is configured; otherwise, or when the
upload fails, it is written under the local uploads directory which the
HTTP server exposes at `/uploads`.
"""

import base64
import hashlib
import time
from pathlib import Path
from typing import Any, Dict, Optional

from . import constants as c
from .http_client import JsonApiClient
from .logging import APIError, FileError, get_logger

logger = get_logger(__name__)

# Parameters Cloudinary leaves out of the signature
_UNSIGNED_PARAMS = {"file", "api_key", "resource_type", "cloud_name"}


def sign_params(params: Dict[str, Any], api_secret: str) -> str:
    """Cloudinary request signature: sha1 of the sorted `k=v` pairs followed by the secret."""
    to_sign = "&".join(
        f"{k}={params[k]}" for k in sorted(params)
        if k not in _UNSIGNED_PARAMS and params[k] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryStorage(JsonApiClient):
    """Signed uploads to Cloudinary."""

    name = "Cloudinary"

    def __init__(self, cloud_name: str, api_key: str, api_secret: str,
                 base_url: str = c.CLOUDINARY_BASE_URL, timeout: int = 60, **kwargs):
        super().__init__(f"{base_url.rstrip('/')}/{cloud_name}", timeout=timeout, **kwargs)
        self.api_key = api_key
        self.api_secret = api_secret

    def upload(self, data_uri: str, resource_type: str = "auto", folder: Optional[str] = None,
               public_id: Optional[str] = None, format: Optional[str] = None) -> Dict[str, Any]:
        """
        Uploads a data URI and returns the Cloudinary response.

        Raises:
            APIError: If the upload fails or the response has no secure_url
        """
        params: Dict[str, Any] = {"timestamp": int(time.time())}
        if folder:
            params["folder"] = folder
        if public_id:
            params["public_id"] = public_id
        if format:
            params["format"] = format
        params["signature"] = sign_params(params, self.api_secret)
        params["api_key"] = self.api_key
        params["file"] = data_uri

        response = self._request("POST", f"{resource_type}/upload", data=params)
        try:
            body = response.json()
        except ValueError as e:
            raise APIError("Cloudinary returned invalid JSON") from e
        if not body.get("secure_url"):
            raise APIError(f"Cloudinary upload returned no secure_url: {body.get('error')}")
        return body


def audio_filename(request_id: str) -> str:
    return f"narration_{request_id}.{c.NARRATION_AUDIO_FORMAT}"


def write_local_audio(buffer: bytes, request_id: str, uploads_dir: str = c.DEFAULT_UPLOADS_DIR) -> str:
    """
    Writes audio under `<uploads_dir>/narrations/` and returns its public path.

    Raises:
        FileError: If the file cannot be written
    """
    target_dir = Path(uploads_dir) / c.NARRATION_FOLDER
    filename = audio_filename(request_id)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        with open(target_dir / filename, "wb") as f:
            f.write(buffer)
    except OSError as e:
        raise FileError(f"Failed to write narration audio to {target_dir / filename}: {e}") from e

    logger.info(f"Saved narration audio to {target_dir / filename}")
    return f"/uploads/{c.NARRATION_FOLDER}/{filename}"


def persist_audio(buffer: bytes, request_id: str, storage: Optional[Any] = None,
                  uploads_dir: str = c.DEFAULT_UPLOADS_DIR) -> str:
    """Stores the audio and returns the URL it can be fetched from."""
    if storage is not None:
        data_uri = f"data:audio/mpeg;base64,{base64.b64encode(buffer).decode('ascii')}"
        try:
            result = storage.upload(
                data_uri,
                resource_type="video",
                folder=c.NARRATION_FOLDER,
                public_id=f"narration_{request_id}",
                format=c.NARRATION_AUDIO_FORMAT,
            )
            return result["secure_url"]
        except Exception as e:
            logger.warning(f"Object storage upload failed for {request_id}, saving locally: {e}")

    return write_local_audio(buffer, request_id, uploads_dir)
