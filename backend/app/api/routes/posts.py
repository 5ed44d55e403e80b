"""Post lifecycle endpoints for the signed-in author.

Every response body is the :class:`ActionResult` envelope.  The HTTP status
follows the result: 200 (201 on create) for success, 400 for field errors,
otherwise the status of the failure's taxonomy code.
"""

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from backend.app.api.deps import get_action_context
from backend.app.core.errors import STATUS_BY_KIND, ErrorKind
from backend.app.models.post import ActionResult, PostInput, SlugRequest, StatusUpdate
from backend.app.services import post_actions
from backend.app.services.post_actions import ActionContext

router = APIRouter()


def _respond(result: ActionResult, *, success_status: int = 200) -> JSONResponse:
    if result.success:
        status = success_status
    elif result.errors:
        status = 400
    else:
        try:
            status = STATUS_BY_KIND[ErrorKind(result.code)]
        except ValueError:
            status = 500
    body = result.model_dump(mode="json", exclude={"data"}, exclude_none=True)
    if result.success:
        body["data"] = jsonable_encoder(result.data)
    return JSONResponse(status_code=status, content=body)


@router.get("/api/posts")
def list_my_posts(ctx: ActionContext = Depends(get_action_context)) -> JSONResponse:
    return _respond(post_actions.get_user_posts(ctx))


@router.post("/api/posts")
def create_post(
    body: PostInput, ctx: ActionContext = Depends(get_action_context),
) -> JSONResponse:
    result = post_actions.create_post(
        ctx, title=body.title, slug=body.slug, content=body.content,
    )
    return _respond(result, success_status=201)


@router.post("/api/posts/slug")
def suggest_slug(body: SlugRequest) -> JSONResponse:
    """Suggest a URL slug for a title (no sign-in needed)."""
    return _respond(post_actions.generate_slug(body.title))


@router.get("/api/posts/{post_id}")
def get_post(post_id: str, ctx: ActionContext = Depends(get_action_context)) -> JSONResponse:
    return _respond(post_actions.get_post_by_id(ctx, post_id))


@router.put("/api/posts/{post_id}")
def update_post(
    post_id: str, body: PostInput, ctx: ActionContext = Depends(get_action_context),
) -> JSONResponse:
    result = post_actions.update_post(
        ctx, post_id, title=body.title, slug=body.slug, content=body.content,
    )
    return _respond(result)


@router.delete("/api/posts/{post_id}")
def delete_post(post_id: str, ctx: ActionContext = Depends(get_action_context)) -> JSONResponse:
    return _respond(post_actions.delete_post(ctx, post_id))


@router.patch("/api/posts/{post_id}/status")
def change_status(
    post_id: str, body: StatusUpdate, ctx: ActionContext = Depends(get_action_context),
) -> JSONResponse:
    return _respond(post_actions.update_post_status(ctx, post_id, body.status))
