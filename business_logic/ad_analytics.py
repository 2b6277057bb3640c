"""
Filtering, sorting and summary figures for the ad management screen.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from models.data_models import Ad, AdAnalytics, AdStatus

logger = logging.getLogger(__name__)

FILTER_ALL = 'all'

SORT_OPTIONS = {
    'created_desc': 'Newest first',
    'created_asc': 'Oldest first',
    'ctr_desc': 'Highest CTR',
    'budget_desc': 'Highest budget',
    'impressions_desc': 'Most impressions',
}


def filter_by_status(ads: List[Ad], status: str) -> List[Ad]:
    """Return the ads with the given status, keeping their original order."""
    if status == FILTER_ALL:
        return list(ads)
    return [ad for ad in ads if ad.status == status]


def search_ads(ads: List[Ad], query: str) -> List[Ad]:
    """Case-insensitive match on title, description and target keywords."""
    query = (query or '').strip().lower()
    if not query:
        return list(ads)
    return [
        ad for ad in ads
        if query in ad.title.lower()
        or query in ad.description.lower()
        or any(query in keyword.lower() for keyword in ad.target_keywords)
    ]


def sort_ads(ads: List[Ad], sort_key: str) -> List[Ad]:
    """Sort a copy of the list. Unknown keys leave the order unchanged."""
    if sort_key == 'created_desc':
        return sorted(ads, key=lambda ad: ad.created_at, reverse=True)
    if sort_key == 'created_asc':
        return sorted(ads, key=lambda ad: ad.created_at)
    if sort_key == 'ctr_desc':
        return sorted(ads, key=lambda ad: ad.ctr, reverse=True)
    if sort_key == 'budget_desc':
        return sorted(ads, key=lambda ad: ad.budget, reverse=True)
    if sort_key == 'impressions_desc':
        return sorted(ads, key=lambda ad: ad.impressions, reverse=True)
    logger.warning(f"Unknown sort key '{sort_key}', keeping backend order")
    return list(ads)


def format_money(minor_units: int) -> str:
    """Format a minor-unit amount as dollars, e.g. 3500 -> '$35.00'."""
    return f"${minor_units / 100:.2f}"


def total_budget(ads: List[Ad]) -> str:
    return format_money(sum(ad.budget for ad in ads))


def summarize(ads: List[Ad]) -> Dict[str, Any]:
    """
    Headline figures for the overview cards.

    Returns:
        Dictionary with counts per status, impressions, clicks, average CTR
        (as a percentage string) and the formatted total budget
    """
    status_counts = {status: 0 for status in AdStatus.values()}
    for ad in ads:
        status_counts[ad.status] = status_counts.get(ad.status, 0) + 1

    average_ctr = sum(ad.ctr for ad in ads) / len(ads) if ads else 0.0

    return {
        'total_ads': len(ads),
        'status_counts': status_counts,
        'total_impressions': sum(ad.impressions for ad in ads),
        'total_clicks': sum(ad.clicks for ad in ads),
        'average_ctr': f"{average_ctr * 100:.2f}%",
        'total_budget': total_budget(ads),
    }


def ads_to_dataframe(ads: List[Ad]) -> pd.DataFrame:
    """Tabular view of the ads for display and grouping."""
    columns = ['id', 'title', 'type', 'status', 'budget', 'impressions', 'clicks', 'ctr', 'created']
    rows = [
        {
            'id': ad.ad_id,
            'title': ad.title,
            'type': ad.ad_type,
            'status': ad.status,
            'budget': ad.budget_amount,
            'impressions': ad.impressions,
            'clicks': ad.clicks,
            'ctr': ad.ctr,
            'created': ad.created_at,
        }
        for ad in ads
    ]
    return pd.DataFrame(rows, columns=columns)


def performance_by_type(ads: List[Ad]) -> pd.DataFrame:
    """Aggregate ad count, impressions, clicks and mean CTR per ad type."""
    df = ads_to_dataframe(ads)
    if df.empty:
        return pd.DataFrame(columns=['type', 'ads', 'impressions', 'clicks', 'avg_ctr'])

    grouped = df.groupby('type', sort=True).agg(
        ads=('id', 'count'),
        impressions=('impressions', 'sum'),
        clicks=('clicks', 'sum'),
        avg_ctr=('ctr', 'mean'),
    )
    return grouped.reset_index()


def top_performing(ads: List[Ad], n: int = 3) -> List[Ad]:
    return sort_ads(ads, 'ctr_desc')[:n]


def insights(ads: List[Ad]) -> List[str]:
    """Plain-language recommendations derived from the current ads."""
    if not ads:
        return ["Create your first ad to start reaching viewers."]

    messages = []
    low_ctr = [ad for ad in ads if ad.is_active and ad.impressions > 0 and ad.ctr < 0.01]
    if low_ctr:
        messages.append(
            f"{len(low_ctr)} active ad(s) have a CTR below 1%. Consider refreshing their creatives."
        )

    if not any(ad.is_active for ad in ads):
        messages.append("All ads are paused, drafts or completed. Activate an ad to start getting impressions.")

    drafts = [ad for ad in ads if ad.status == AdStatus.DRAFT.value]
    if drafts:
        messages.append(f"{len(drafts)} draft ad(s) are waiting to be activated.")

    best = top_performing(ads, 1)
    if best and best[0].impressions > 0:
        messages.append(f"Best performer: \"{best[0].title}\" at {best[0].formatted_ctr} CTR.")

    return messages


def analytics_to_dataframe(items: Iterable[AdAnalytics]) -> pd.DataFrame:
    """Table of backend-computed per-ad figures, highest spend first."""
    columns = ['title', 'status', 'impressions', 'clicks', 'ctr_pct', 'spend', 'revenue', 'delivered']
    rows = [
        {
            'title': item.title,
            'status': item.status,
            'impressions': item.impressions,
            'clicks': item.clicks,
            'ctr_pct': item.ctr,
            'spend': item.spend,
            'revenue': item.revenue,
            'delivered': round(item.delivery_progress * 100, 1),
        }
        for item in items
    ]
    df = pd.DataFrame(rows, columns=columns)
    if df.empty:
        return df
    return df.sort_values('spend', ascending=False, kind='stable').reset_index(drop=True)


def ad_detail_sections(ad: Ad, analytics: Optional[AdAnalytics] = None) -> Dict[str, Dict[str, str]]:
    """
    Label/value pairs for the ad details view: performance, targeting, details.

    Backend analytics replace the list figures when they are available.
    """
    if analytics is not None:
        performance = {
            'Impressions': f"{analytics.impressions:,}",
            'Clicks': f"{analytics.clicks:,}",
            'CTR': analytics.formatted_ctr,
            'Spend': f"${analytics.spend:.2f}",
            'Creator revenue': f"${analytics.revenue:.2f}",
            'Delivery': f"{analytics.delivery_progress * 100:.1f}% of {analytics.estimated_impressions:,}",
        }
    else:
        performance = {
            'Impressions': f"{ad.impressions:,}",
            'Clicks': f"{ad.clicks:,}",
            'CTR': ad.formatted_ctr,
            'CPM': f"${ad.cpm:.2f}",
            'CPC': f"${ad.cpc:.2f}",
        }

    targeting = {
        'Audience': ad.target_audience,
        'Keywords': ", ".join(ad.target_keywords) if ad.target_keywords else 'None',
    }

    details = {
        'Type': ad.ad_type,
        'Status': ad.status.upper(),
        'Budget': ad.formatted_budget,
        'Created': f"{ad.created_at:%d/%m/%Y}",
        'Runs': _date_range(ad),
    }
    if ad.link:
        details['Link'] = ad.link
    return {'Performance': performance, 'Targeting': targeting, 'Details': details}


def _date_range(ad: Ad) -> str:
    if ad.start_date is None and ad.end_date is None:
        return 'Not scheduled'
    start = f"{ad.start_date:%d/%m/%Y}" if ad.start_date else '?'
    end = f"{ad.end_date:%d/%m/%Y}" if ad.end_date else 'open-ended'
    return f"{start} to {end}"
