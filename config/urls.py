from django.contrib import admin
from django.urls import path

admin.site.site_header = "RentLedger administration"
admin.site.site_title = "RentLedger"

urlpatterns = [
    path("django-admin/", admin.site.urls),
]
