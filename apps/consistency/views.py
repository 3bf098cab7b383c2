from django.http import HttpResponse

from .metrics import render_metrics


def metrics(request):
    """Prometheus scrape endpoint. Unauthenticated, no DB query."""
    return HttpResponse(render_metrics(), content_type="text/plain; version=0.0.4")
