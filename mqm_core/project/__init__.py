"""Project upsert pipeline, membership and read views."""

from mqm_core.project.files import FileParser, ParsedBitext, UploadedFile
from mqm_core.project.membership import (
    add_user_to_project,
    is_user_assigned_to_project,
    list_project_users,
    map_user_to_project,
    remove_user_from_all_projects,
    remove_user_from_project,
)
from mqm_core.project.project_store import (
    PROJECT_MUTABLE_FIELDS,
    ProjectRecord,
    create_project_row,
    delete_project,
    get_project_by_id,
    list_projects,
    set_project_attributes,
)
from mqm_core.project.project_view import ProjectOverview, SegmentView, get_project_overview
from mqm_core.project.upsert_service import UpsertRequest, UpsertResult, upsert_project

__all__ = [
    "PROJECT_MUTABLE_FIELDS",
    "FileParser",
    "ParsedBitext",
    "ProjectOverview",
    "ProjectRecord",
    "SegmentView",
    "UploadedFile",
    "UpsertRequest",
    "UpsertResult",
    "add_user_to_project",
    "create_project_row",
    "delete_project",
    "get_project_by_id",
    "get_project_overview",
    "is_user_assigned_to_project",
    "list_project_users",
    "list_projects",
    "map_user_to_project",
    "remove_user_from_all_projects",
    "remove_user_from_project",
    "set_project_attributes",
    "upsert_project",
]
