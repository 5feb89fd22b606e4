"""
Username-based connector backed by the instaloader CLI.

instaloader downloads post metadata as one JSON file per post into
<work_dir>/<username>/. Pictures, videos and captions files are skipped;
only the metadata JSON is read.
"""

import asyncio
import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from app.core.config import settings
from app.models.social_account import SocialAccountLink
from app.schemas.posts import MediaKind, PostRecord
from app.services.post_store import PostCorpusStore

from .base import IngestionResult, PostConnector

logger = structlog.get_logger(__name__)

PERMALINK_TEMPLATE = "https://www.instagram.com/p/{shortcode}/"


def build_command(executable: str, username: str, count: int) -> list[str]:
    return [
        executable,
        "--no-pictures",
        "--no-videos",
        "--no-video-thumbnails",
        "--no-captions",
        "--no-profile-pic",
        "--no-compress-json",
        "--count",
        str(count),
        "--",
        username,
    ]


def _caption_from_node(node: dict[str, Any]) -> Optional[str]:
    edges = (node.get("edge_media_to_caption") or {}).get("edges") or []
    if not edges:
        return None
    return (edges[0].get("node") or {}).get("text") or None


def _count(node: dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = (node.get(key) or {}).get("count")
        if value:
            return int(value)
    return 0


def metadata_to_post(user_id: str, data: dict[str, Any]) -> PostRecord:
    """
    Map one instaloader metadata document to a PostRecord.

    Raises:
        KeyError, ValueError, TypeError: if the document is not a usable post
    """
    node = data["node"]
    shortcode = node.get("shortcode")
    return PostRecord(
        user_id=user_id,
        external_post_id=str(node["id"]),
        caption_text=_caption_from_node(node),
        media_url=node.get("display_url"),
        permalink=PERMALINK_TEMPLATE.format(shortcode=shortcode) if shortcode else None,
        like_count=_count(node, "edge_liked_by", "edge_media_preview_like"),
        comment_count=_count(node, "edge_media_to_comment"),
        media_kind=MediaKind.VIDEO if node.get("__typename") == "GraphVideo" else MediaKind.IMAGE,
        posted_at=datetime.fromtimestamp(int(node["taken_at_timestamp"]), tz=timezone.utc),
    )


class InstaloaderConnector(PostConnector):
    """
    Scrapes a public profile by username.

    Never raises for scraper failures: a failed or empty run yields a partial
    IngestionResult, and any files that were written are still processed.
    """

    name = "instaloader"

    def __init__(
        self,
        executable: Optional[str] = None,
        work_dir: Optional[str] = None,
        post_count: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.executable = executable or settings.instaloader_executable
        self.work_dir = Path(work_dir or settings.instaloader_work_dir)
        self.post_count = post_count or settings.instaloader_post_count
        self.timeout = timeout or settings.instaloader_timeout_seconds

    def _prepare_dir(self, user_id: str) -> Path:
        run_dir = self.work_dir / user_id
        if run_dir.exists():
            shutil.rmtree(run_dir, ignore_errors=True)
        run_dir.mkdir(parents=True, exist_ok=True)
        return run_dir

    async def _run(self, run_dir: Path, username: str, result: IngestionResult) -> None:
        command = build_command(self.executable, username, self.post_count)
        logger.info("Running instaloader", username=username, count=self.post_count)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(run_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            result.errors.append(f"instaloader unavailable: {e}")
            logger.warning("instaloader could not be started", error=str(e))
            return

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            result.errors.append(f"instaloader timed out after {self.timeout}s")
            logger.warning("instaloader timed out", username=username, timeout=self.timeout)
            return
        except asyncio.CancelledError:
            # Caller gave up (analyzer refresh timeout); do not leave the scraper running
            process.kill()
            raise

        if process.returncode != 0:
            message = (stderr or b"").decode("utf-8", errors="replace").strip()
            result.errors.append(f"instaloader exited with {process.returncode}: {message[:200]}")
            logger.warning(
                "instaloader failed",
                username=username,
                returncode=process.returncode,
                stderr=message[:500],
            )

    def _metadata_files(self, run_dir: Path, username: str) -> list[Path]:
        profile_dir = run_dir / username
        if not profile_dir.is_dir():
            return []
        return sorted(
            path
            for path in profile_dir.glob("*.json")
            if "profile" not in path.name
        )

    async def ingest(
        self,
        user_id: str,
        store: PostCorpusStore,
        link: SocialAccountLink,
    ) -> IngestionResult:
        result = IngestionResult(connector=self.name)
        username = link.external_username
        if not username:
            result.errors.append("Linked account has no username")
            result.message = "No Instagram username linked"
            return result

        run_dir = self._prepare_dir(user_id)
        await self._run(run_dir, username, result)

        for path in self._metadata_files(run_dir, username):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                node_type = (data.get("instaloader") or {}).get("node_type", "Post")
                if node_type != "Post":
                    continue
                post = metadata_to_post(user_id, data)
            except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
                result.skipped += 1
                result.errors.append(f"{path.name}: {e}")
                logger.warning("Skipping unreadable post file", file=path.name, error=str(e))
                continue

            result.fetched += 1
            if await store.append(user_id, post):
                result.added += 1

        if result.fetched == 0:
            logger.warning("instaloader produced no usable posts", user_id=user_id, username=username)
        else:
            logger.info(
                "instaloader ingestion complete",
                user_id=user_id,
                username=username,
                fetched=result.fetched,
                added=result.added,
                skipped=result.skipped,
            )
        return result
