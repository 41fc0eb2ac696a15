"""
Mockup service for UISketch database operations: projects, mockups and versions
"""
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
import logging
from supabase import Client

from config.decorators import retry_on_transient_error
from models.generation import Fragment
from models.mockup import (
    MockupStatus,
    STATUS_ORDER,
    TERMINAL_STATUSES,
    FAILURE_MARKER,
    CreateMockupRequest,
)
from services.mockup_cache import MockupCache, mockup_cache

logger = logging.getLogger(__name__)


@retry_on_transient_error
def _execute(query):
    return query.execute()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MockupService:
    """
    Reads log and return None/[] on failure. Writes raise, so a job step that
    fails to persist is retried by the job runner.
    """

    def __init__(self, supabase_client: Client, cache: Optional[MockupCache] = None):
        self.supabase = supabase_client
        self.cache = cache if cache is not None else mockup_cache

    # Projects and mockups

    async def create_project(self, user_id: str, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        data = {
            "user_id": user_id,
            "name": name,
            "description": description,
            "created_at": _now(),
        }
        response = _execute(self.supabase.table("projects").insert(data))
        if not response.data:
            raise RuntimeError("Project insert returned no row")
        logger.info(f"Created project {response.data[0]['id']} for user {user_id}")
        return response.data[0]

    async def create_mockup(self, user_id: str, project_id: str, request: CreateMockupRequest,
                            name: Optional[str] = None) -> Dict[str, Any]:
        """
        Insert a mockup in PENDING state. Its code stays empty until the
        generation job finishes.
        """
        now = _now()
        data = {
            "project_id": project_id,
            "user_id": user_id,
            "name": name or request.prompt[:60],
            "prompt": request.prompt,
            "code": "",
            "device_type": request.device_type.value,
            "ui_library": request.ui_library.value,
            "ai_model": request.ai_model.value,
            "variation_count": request.variation_count,
            "status": MockupStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        }
        response = _execute(self.supabase.table("mockups").insert(data))
        if not response.data:
            raise RuntimeError("Mockup insert returned no row")
        logger.info(f"Created mockup {response.data[0]['id']} in project {project_id}")
        return response.data[0]

    async def get_mockup(self, mockup_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Get a mockup by ID. With user_id, only the owner's mockup is returned.
        """
        try:
            query = self.supabase.table("mockups").select("*").eq("id", mockup_id)
            if user_id is not None:
                query = query.eq("user_id", user_id)
            response = _execute(query.limit(1))
            return response.data[0] if response.data else None
        except Exception as e:
            logger.error(f"Error getting mockup {mockup_id}: {str(e)}")
            return None

    async def get_versions(self, mockup_id: str) -> List[Dict[str, Any]]:
        try:
            response = _execute(
                self.supabase.table("mockup_versions").select("*").eq("mockup_id", mockup_id).order("version")
            )
            return response.data or []
        except Exception as e:
            logger.error(f"Error getting versions of mockup {mockup_id}: {str(e)}")
            return []

    async def get_mockup_with_variations(self, mockup_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        mockup = await self.get_mockup(mockup_id, user_id)
        if not mockup:
            return None
        return {**mockup, "variations": await self.get_versions(mockup_id)}

    async def list_user_mockups(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Dict[str, Any]]:
        """
        Get a user's mockups, newest first
        """
        try:
            response = _execute(
                self.supabase.table("mockups").select(
                    "id, project_id, name, prompt, device_type, ui_library, ai_model, variation_count, status, created_at, updated_at"
                ).eq("user_id", user_id).order("created_at", desc=True).range(offset, offset + limit - 1)
            )
            return response.data or []
        except Exception as e:
            logger.error(f"Error listing mockups for user {user_id}: {str(e)}")
            return []

    async def get_status(self, mockup_id: str) -> Optional[MockupStatus]:
        response = _execute(self.supabase.table("mockups").select("status").eq("id", mockup_id).limit(1))
        if not response.data:
            return None
        return MockupStatus(response.data[0]["status"])

    # Lifecycle

    async def transition_status(self, mockup_id: str, new_status: MockupStatus,
                                extra_fields: Optional[Dict[str, Any]] = None) -> bool:
        """
        Move a mockup forward along PENDING -> GENERATING -> COMPLETED/FAILED.

        Re-applying the current status is a no-op that reports success, so a
        retried job step is harmless. Going backwards or leaving a terminal
        status is refused.
        """
        current = await self.get_status(mockup_id)
        if current is None:
            logger.warning(f"Status change for unknown mockup {mockup_id} ignored")
            return False

        if current == new_status:
            if extra_fields:
                self._update_mockup(mockup_id, extra_fields)
            return True

        if current in TERMINAL_STATUSES or STATUS_ORDER[new_status] < STATUS_ORDER[current]:
            logger.warning(f"Refusing status change {current.value} -> {new_status.value} for mockup {mockup_id}")
            return False

        fields = dict(extra_fields or {})
        fields["status"] = new_status.value
        response = _execute(
            self.supabase.table("mockups").update({**fields, "updated_at": _now()})
            .eq("id", mockup_id).eq("status", current.value)
        )
        self.cache.invalidate(mockup_id)

        if not response.data:
            # Another writer moved the mockup first
            logger.warning(f"Mockup {mockup_id} left {current.value} before it could move to {new_status.value}")
            return False

        logger.info(f"Mockup {mockup_id}: {current.value} -> {new_status.value}")
        return True

    async def mark_failed(self, mockup_id: str, error: str) -> bool:
        return await self.transition_status(
            mockup_id,
            MockupStatus.FAILED,
            {"code": f"{FAILURE_MARKER}{error}"},
        )

    async def save_variations(self, mockup_id: str, fragments: List[Fragment], prompt: str) -> List[Dict[str, Any]]:
        """
        Store the surviving fragments as versions 1..k and complete the mockup.

        Versions are numbered by position among the fragments passed in and
        upserted on (mockup_id, version), so running this twice leaves the
        same k rows. Version 1's HTML becomes the mockup's canonical code.
        """
        if not fragments:
            raise ValueError("save_variations needs at least one fragment")

        now = _now()
        rows = [
            {
                "mockup_id": mockup_id,
                "version": position,
                "label": fragment.label,
                "code": fragment.code,
                "prompt": prompt,
                "created_at": now,
                "updated_at": now,
            }
            for position, fragment in enumerate(fragments, start=1)
        ]
        response = _execute(
            self.supabase.table("mockup_versions").upsert(rows, on_conflict="mockup_id,version")
        )
        logger.info(f"Saved {len(rows)} version(s) for mockup {mockup_id}")

        await self.transition_status(mockup_id, MockupStatus.COMPLETED, {"code": fragments[0].code})
        self.cache.invalidate(mockup_id)
        return response.data or []

    # Versions

    async def get_version(self, mockup_id: str, version_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = _execute(
                self.supabase.table("mockup_versions").select("*")
                .eq("id", version_id).eq("mockup_id", mockup_id).limit(1)
            )
            return response.data[0] if response.data else None
        except Exception as e:
            logger.error(f"Error getting version {version_id}: {str(e)}")
            return None

    async def update_version_code(self, mockup_id: str, version_id: str, code: str, prompt: str) -> Optional[Dict[str, Any]]:
        """
        Overwrite a version in place. Editing version 1 also updates the
        mockup's canonical code.
        """
        response = _execute(
            self.supabase.table("mockup_versions").update({
                "code": code,
                "prompt": prompt,
                "updated_at": _now(),
            }).eq("id", version_id).eq("mockup_id", mockup_id)
        )
        if not response.data:
            logger.warning(f"Version {version_id} of mockup {mockup_id} not found for update")
            return None

        version = response.data[0]
        if version.get("version") == 1:
            self._update_mockup(mockup_id, {"code": code})

        self.cache.invalidate(mockup_id)
        logger.info(f"Updated version {version.get('version')} of mockup {mockup_id}")
        return version

    async def delete_mockup(self, mockup_id: str, user_id: str) -> bool:
        """
        Delete a mockup (with user ownership check); versions cascade
        """
        try:
            if not await self.get_mockup(mockup_id, user_id):
                return False
            _execute(self.supabase.table("mockup_versions").delete().eq("mockup_id", mockup_id))
            response = _execute(
                self.supabase.table("mockups").delete().eq("id", mockup_id).eq("user_id", user_id)
            )
            self.cache.invalidate(mockup_id)

            if response.data:
                logger.info(f"Deleted mockup {mockup_id} for user {user_id}")
                return True
            return False

        except Exception as e:
            logger.error(f"Error deleting mockup {mockup_id}: {str(e)}")
            return False

    def _update_mockup(self, mockup_id: str, fields: Dict[str, Any]) -> None:
        _execute(self.supabase.table("mockups").update({**fields, "updated_at": _now()}).eq("id", mockup_id))
        self.cache.invalidate(mockup_id)
