'''
API endpoints for Authentication: admin and guardian login, passwordless student login.
'''
from typing import Annotated
from fastapi import APIRouter, Depends, Path

from ..services.auth_service import LoginService
from ..models import user as user_models

class AuthRoutes:
    """
    A class to encapsulate all authentication endpoints.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/api",
            tags=["Authentication"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/admin/login",
            self.login_admin,
            methods=["POST"],
            response_model=user_models.LoginResponse,
            summary="Administrator Login"
        )
        self.router.add_api_route(
            "/parent/login",
            self.login_guardian,
            methods=["POST"],
            response_model=user_models.LoginResponse,
            summary="Guardian (Parent) Login"
        )
        self.router.add_api_route(
            "/student/login/{student_code}",
            self.login_student,
            methods=["GET"],
            response_model=user_models.LoginResponse,
            summary="Passwordless Student Login"
        )

    async def login_admin(
        self,
        credentials: user_models.LoginRequest,
        login_service: Annotated[LoginService, Depends(LoginService)]
    ):
        """
        Authenticates an administrator by full name and password.
        """
        return await login_service.login_admin(credentials)

    async def login_guardian(
        self,
        credentials: user_models.LoginRequest,
        login_service: Annotated[LoginService, Depends(LoginService)]
    ):
        """
        Authenticates a guardian by full name and password.
        """
        return await login_service.login_guardian(credentials)

    async def login_student(
        self,
        student_code: Annotated[str, Path(max_length=32)],
        login_service: Annotated[LoginService, Depends(LoginService)]
    ):
        """
        Identifies a student by their external code and returns their balance.
        """
        return await login_service.login_student(student_code)

# Create an instance of the class and export its router
auth_routes = AuthRoutes()
router = auth_routes.router
