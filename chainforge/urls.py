# chainforge/urls.py

from django.contrib import admin
from django.urls import path

admin.site.site_header = "ChainForge"
admin.site.site_title = "ChainForge"
admin.site.index_title = "Welcome to ChainForge Administration"

urlpatterns = [
    path('admin/', admin.site.urls),
]
