from django.urls import path

from . import views

app_name = 'users'

urlpatterns = [
    path('login/', views.login, name='login'),
    path('logout/', views.logout, name='logout'),
    path('me/', views.me, name='current-user'),
    path('team/', views.team_list, name='team-list'),
    path('team/<uuid:user_id>/', views.team_member_update, name='team-member'),
]
