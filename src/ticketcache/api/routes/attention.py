"""Space-wide attention feed endpoint."""

from fastapi import APIRouter

from ticketcache.api.dependencies import SelectedReposDep, SettingsDep, StateStoreDep
from ticketcache.api.models import APIResponse, AttentionFeedResponse, attention_feed_to_response
from ticketcache.attention import AttentionAggregator

router = APIRouter(prefix="/space", tags=["attention"])


@router.get("/attention", response_model=APIResponse[AttentionFeedResponse])
def get_attention_feed(
    repos: SelectedReposDep, store: StateStoreDep, settings: SettingsDep
) -> APIResponse[AttentionFeedResponse]:
    """Tickets across the selected repositories that need attention, ranked."""
    snapshots = [store.load_snapshot(r.full_name) for r in repos]
    aggregator = AttentionAggregator(stale_after_ms=settings.attention_stale_after_ms)
    feed = aggregator.aggregate(snapshots)
    return APIResponse(data=attention_feed_to_response(feed))
