from django.urls import path

from . import views

app_name = 'assistant'

urlpatterns = [
    # Chat-style data entry
    path('', views.ask, name='ask'),
    path('confirm/', views.confirm, name='confirm'),

    # Analysis
    path('analyze-mutations/', views.analyze_document, name='analyze-mutations'),
    path('identify/', views.identify, name='identify'),
]
