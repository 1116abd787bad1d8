from django.urls import path, include

urlpatterns = [
    path('api/pdp/', include('apps.pdp.api.urls')),
]
