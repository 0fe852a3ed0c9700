# config/urls.py

from django.contrib import admin
from django.urls import include, path, re_path

from apps.board.urls import boards_urlpatterns, cards_urlpatterns, lists_urlpatterns
from apps.core import views as core_views
from apps.core.urls import auth_urlpatterns, users_urlpatterns
from apps.core.utils import method_router

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # API
    path('api/auth', include(auth_urlpatterns)),
    path('api/users', include(users_urlpatterns)),
    path('api/boards', include(boards_urlpatterns)),
    path('api/lists', include(lists_urlpatterns)),
    path('api/cards', include(cards_urlpatterns)),

    # === MONITORAMENTO ===
    path('api/health', method_router(GET=core_views.health_check), name='health'),
]

# Debug Toolbar se disponível (antes do catch-all)
try:
    import debug_toolbar
    from django.conf import settings

    if settings.DEBUG and 'debug_toolbar' in settings.INSTALLED_APPS:
        urlpatterns.append(path('__debug__/', include(debug_toolbar.urls)))
except ImportError:
    pass

# Qualquer outra rota responde 404 no envelope da API
urlpatterns.append(re_path(r'^(?P<path>.*)$', core_views.route_not_found))

# Customizar títulos do admin
admin.site.site_header = 'TaskBoard Admin'
admin.site.site_title = 'TaskBoard'
admin.site.index_title = 'Administração do Sistema'
