from django.urls import path
from . import views

app_name = 'jobs'

urlpatterns = [
    path('cron/cleanup-trash/', views.CleanupTrashView.as_view(), name='cleanup-trash'),
    path('cron/process-payments/', views.ProcessPaymentsView.as_view(), name='process-payments'),
    path('cron/send-reminders/', views.SendRemindersView.as_view(), name='send-reminders'),
    path('cron/publish-scheduled/', views.PublishScheduledView.as_view(), name='publish-scheduled'),
    path('cron/expire-waitlist/', views.ExpireWaitlistView.as_view(), name='expire-waitlist'),
    path('cron/weekly-summary/', views.WeeklySummaryView.as_view(), name='weekly-summary'),
    path('cron/send-followup/', views.SendFollowupView.as_view(), name='send-followup'),
]
