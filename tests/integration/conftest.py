"""
Integration test helper utilities.

Payload builders shaped like the real provider APIs.
"""

from __future__ import annotations


def mock_pexels_response(count: int, start: int = 0) -> dict:
    """Create a mock Pexels search response."""
    return {
        "page": 1,
        "per_page": count,
        "photos": [
            {
                "id": start + i,
                "width": 1600,
                "height": 900,
                "url": f"https://www.pexels.com/photo/{start + i}/",
                "photographer": f"Photographer {start + i}",
                "photographer_url": f"https://www.pexels.com/@p{start + i}",
                "alt": f"Harbour view {start + i}",
                "src": {
                    "medium": f"https://images.pexels.com/photos/{start + i}/m.jpeg",
                    "large2x": f"https://images.pexels.com/photos/{start + i}/l.jpeg",
                    "small": f"https://images.pexels.com/photos/{start + i}/s.jpeg",
                },
            }
            for i in range(count)
        ],
    }


def mock_pixabay_response(count: int, remaining: int = 99) -> tuple[dict, dict[str, str]]:
    """Create a mock Pixabay search body and its rate-limit headers."""
    body = {
        "total": count,
        "totalHits": count,
        "hits": [
            {
                "id": 1000 + i,
                "pageURL": f"https://pixabay.com/photos/{1000 + i}/",
                "tags": "harbour, boats",
                "previewURL": f"https://cdn.pixabay.com/{1000 + i}_150.jpg",
                "webformatURL": f"https://pixabay.com/get/{1000 + i}_640.jpg",
                "largeImageURL": f"https://pixabay.com/get/{1000 + i}_1280.jpg",
                "imageWidth": 4000,
                "imageHeight": 2500,
                "user": "sailor",
                "user_id": 77,
            }
            for i in range(count)
        ],
    }
    headers = {
        "X-RateLimit-Limit": "100",
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": "60",
    }
    return body, headers


def mock_openverse_response(count: int, source: str = "flickr") -> dict:
    """Create a mock Openverse image search response."""
    return {
        "result_count": count,
        "results": [
            {
                "id": f"ov-{i}",
                "title": f"Openverse {i}",
                "url": f"https://live.staticflickr.com/65535/{i}.jpg",
                "thumbnail": f"https://api.openverse.org/v1/images/ov-{i}/thumb/",
                "creator": "Carla",
                "license": "by",
                "license_url": "https://creativecommons.org/licenses/by/2.0/",
                "foreign_landing_url": f"https://www.flickr.com/photos/{i}",
                "source": source,
                "tags": [],
            }
            for i in range(count)
        ],
    }
