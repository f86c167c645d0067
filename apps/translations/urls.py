from django.urls import path
from .views import TranslateView, TranslateBlogView, GenerateMetaView

app_name = 'translations'

urlpatterns = [
    path('translate/', TranslateView.as_view(), name='translate'),
    path('translate/blog/', TranslateBlogView.as_view(), name='translate-blog'),
    path('translate/generate-meta/', GenerateMetaView.as_view(), name='generate-meta'),
]
