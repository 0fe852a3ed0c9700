# apps/core/urls.py

from django.urls import path

from . import views
from .utils import method_router

# /api/auth
auth_urlpatterns = [
    path('/register', method_router(POST=views.register), name='register'),
    path('/login', method_router(POST=views.login), name='login'),
    path('/me', method_router(GET=views.me), name='me'),
    path('/logout', method_router(POST=views.logout), name='logout'),
    path('/profile', method_router(PUT=views.update_auth_profile), name='auth_profile'),
]

# /api/users
users_urlpatterns = [
    path('/search', method_router(GET=views.search_users), name='users_search'),
    path('/profile', method_router(PUT=views.update_user_profile), name='user_profile'),
    path('/preferences', method_router(PUT=views.update_preferences), name='user_preferences'),
    path('/stats', method_router(GET=views.user_stats), name='user_stats'),
    path('/account', method_router(DELETE=views.delete_account), name='user_account'),
    path('/<int:user_id>', method_router(GET=views.get_user), name='user_detail'),
]
