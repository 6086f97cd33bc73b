from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from learnhub.auth.models import AuthenticatedUser, Role
from learnhub.auth.rbac import require_role
from learnhub.utils.response import success_response

# Entry points of the three role-scoped areas. The dashboards behind them are
# served elsewhere; these only confirm the caller may enter.
learner_router = APIRouter()
trainer_router = APIRouter()
operations_router = APIRouter()


@learner_router.get("/home")
async def learner_home(
    current_user: AuthenticatedUser = Depends(require_role(Role.LEARNER)),
) -> JSONResponse:
    return success_response({"user": current_user}, "Learner area")


@trainer_router.get("/home")
async def trainer_home(
    current_user: AuthenticatedUser = Depends(require_role(Role.TRAINER)),
) -> JSONResponse:
    return success_response({"user": current_user}, "Trainer area")


@operations_router.get("/home")
async def operations_home(
    current_user: AuthenticatedUser = Depends(require_role(Role.OPERATIONS)),
) -> JSONResponse:
    return success_response({"user": current_user}, "Operations area")
