from .auth import LoginRequest, MeResponse, RegistrationResponse, TenantRegistration, TokenResponse
from .common import MessageResponse
from .project import ProjectCreate, ProjectListResponse, ProjectResponse, ProjectUpdate
from .task import TaskCreate, TaskListResponse, TaskResponse, TaskStatusUpdate, TaskUpdate
from .tenant import TenantDetailsResponse, TenantListResponse, TenantResponse, TenantUpdate
from .user import UserCreate, UserListResponse, UserResponse, UserUpdate

# Define the public API of this module
__all__ = [
    "LoginRequest",
    "MeResponse",
    "RegistrationResponse",
    "TenantRegistration",
    "TokenResponse",
    "MessageResponse",
    "ProjectCreate",
    "ProjectListResponse",
    "ProjectResponse",
    "ProjectUpdate",
    "TaskCreate",
    "TaskListResponse",
    "TaskResponse",
    "TaskStatusUpdate",
    "TaskUpdate",
    "TenantDetailsResponse",
    "TenantListResponse",
    "TenantResponse",
    "TenantUpdate",
    "UserCreate",
    "UserListResponse",
    "UserResponse",
    "UserUpdate",
]
