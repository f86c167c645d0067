from django.urls import path
from .views import TrashView

app_name = 'trash'

urlpatterns = [
    path('admin/trash/', TrashView.as_view(), name='trash'),
]
