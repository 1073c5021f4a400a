"""
Patient medical history: paginated timeline, utilization metrics and export.

Patients only ever see their own history; the patient id is taken from
the authenticated user, never from the request.
"""
from __future__ import annotations

from django.conf import settings
from django.http import HttpResponse
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from care.exceptions import NoHistoryToExportError
from care.permissions import IsPatientRole
from care.serializers.history import ExportQuerySerializer, MedicalHistoryQuerySerializer, MetricsQuerySerializer
from care.services import export, metrics, timeline


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def medical_history(request):
    q = MedicalHistoryQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    limit = q.validated_data.get('limit') or int(getattr(settings, 'TIMELINE_DEFAULT_LIMIT', 20))
    page = timeline.get_timeline(
        request.user.id, page=q.validated_data.get('page') or 1, limit=limit, **q.filters(),
    )
    return Response({
        'ok': True,
        'timeline': [e.as_dict() for e in page.entries],
        'pagination': page.pagination,
        'degradedSources': page.degraded,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def medical_history_metrics(request):
    q = MetricsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    filters = q.filters()
    page = timeline.get_full_timeline(request.user.id, **filters)
    start, end = filters['start_date'], filters['end_date']
    trend = metrics.aggregate_trend(
        page.entries,
        start=timezone.localtime(start).date() if start else None,
        end=timezone.localtime(end).date() if end else None,
    )
    return Response({
        'ok': True,
        'metrics': metrics.aggregate_metrics(page.entries).as_dict(),
        'trend': [p.as_dict() for p in trend],
        'degradedSources': page.degraded,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def export_medical_history(request):
    q = ExportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    fmt = q.validated_data['format']
    filters = q.filters()
    page = timeline.get_full_timeline(request.user.id, **filters)
    if not page.entries:
        raise NoHistoryToExportError()

    rows = export.timeline_rows(page.entries)
    filename = export.export_filename(request.user.id, fmt)
    if fmt == 'csv':
        resp = HttpResponse(export.render_csv(rows), content_type='text/csv; charset=utf-8')
    else:
        body = export.render_pdf(
            'Medical History Timeline', rows,
            date_range=export.date_range_label(filters['start_date'], filters['end_date']),
        )
        resp = HttpResponse(body, content_type='application/pdf')
    resp['Content-Disposition'] = f'attachment; filename="{filename}"'
    if page.degraded:
        resp['X-Degraded-Sources'] = ','.join(page.degraded)
    return resp
