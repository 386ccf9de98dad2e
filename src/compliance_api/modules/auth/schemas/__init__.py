from .auth_schemas import (
    LoginRequest, TokenResponse, UserCreate, UserListResponse, UserResponse, UserUpdate,
)

__all__ = [
    'LoginRequest', 'TokenResponse', 'UserCreate', 'UserListResponse', 'UserResponse', 'UserUpdate',
]
