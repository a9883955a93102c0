from django.urls import path
from .views import UserListAPIView, UserDetailAPIView, SetActiveAPIView

urlpatterns = [
    path("users/", UserListAPIView.as_view(), name="admin-user-list"),
    path("users/<int:pk>/", UserDetailAPIView.as_view(), name="admin-user-detail"),
    path("users/<int:pk>/activate/", SetActiveAPIView.as_view(active=True), name="admin-user-activate"),
    path("users/<int:pk>/deactivate/", SetActiveAPIView.as_view(active=False), name="admin-user-deactivate"),
]
