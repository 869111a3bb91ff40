from django.urls import path
from . import views

app_name = 'pdc'

urlpatterns = [
    path('pdcs', views.pdc_collection, name='pdc_collection'),
    path('pdcs/bulk', views.pdc_bulk_create, name='pdc_bulk_create'),
    path('pdcs/dashboard', views.pdc_dashboard, name='pdc_dashboard'),
    path('pdcs/withdrawals', views.pdc_withdrawals, name='pdc_withdrawals'),
    path('pdcs/withdrawal-reasons', views.pdc_withdrawal_reasons, name='pdc_withdrawal_reasons'),
    path('pdcs/banks', views.pdc_banks, name='pdc_banks'),
    path('pdcs/holder', views.pdc_holder, name='pdc_holder'),
    path('pdcs/check-duplicate', views.pdc_check_duplicate, name='pdc_check_duplicate'),
    path('pdcs/promote-due', views.pdc_promote_due, name='pdc_promote_due'),
    path('pdcs/invoice/<int:invoice_id>', views.pdc_by_invoice, name='pdc_by_invoice'),
    path('pdcs/<int:pk>', views.pdc_detail, name='pdc_detail'),
    path('pdcs/<int:pk>/chain', views.pdc_chain, name='pdc_chain'),
    path('pdcs/<int:pk>/deposit', views.pdc_deposit, name='pdc_deposit'),
    path('pdcs/<int:pk>/clear', views.pdc_clear, name='pdc_clear'),
    path('pdcs/<int:pk>/bounce', views.pdc_bounce, name='pdc_bounce'),
    path('pdcs/<int:pk>/replace', views.pdc_replace, name='pdc_replace'),
    path('pdcs/<int:pk>/withdraw', views.pdc_withdraw, name='pdc_withdraw'),
    path('pdcs/<int:pk>/cancel', views.pdc_cancel, name='pdc_cancel'),
    path('tenants/<int:tenant_id>/pdcs', views.tenant_pdcs, name='tenant_pdcs'),
]
