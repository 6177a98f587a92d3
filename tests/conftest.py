"""Shared fixtures for the storyshelf test-suite."""

import pytest

from tests.factories import make_records


@pytest.fixture
def dragon_records():
    return make_records(
        (1, "Dragon Sky", "An", ["fantasy"]),
        (2, "Dragon Moon", "Bao", ["fantasy", "romance"]),
    )


@pytest.fixture
def catalog_data():
    """A small seed for ``CatalogStore`` covering all three partitions."""
    return {
        "stories": [
            {"id": 1, "title": "Đấu Phá Thương Khung", "author": "Thiên Tàm Thổ Đậu",
             "genres": "Tiên Hiệp, Huyền Huyễn", "status": "completed"},
            {"id": 2, "title": "Phàm Nhân Tu Tiên", "author": "Vong Ngữ",
             "genres": "Tiên Hiệp", "status": "completed"},
            {"id": 6, "title": "Dragon Sky", "author": "An", "genres": ["fantasy"]},
            {"id": 7, "title": "Dragon Moon", "author": "Bao", "genres": ["fantasy", "romance"]},
            {"id": 8, "title": "Rohan's Journey", "author": "Mira Vale", "genres": ["adventure"]},
        ],
        "licensed": [
            {"id": 1, "title": "Nhà Giả Kim", "author": "Paulo Coelho", "genres": "Tiểu Thuyết",
             "purchase_links": [{"name": "Tiki", "url": "https://tiki.vn/nha-gia-kim"}]},
            {"id": 2, "title": "Dragon Keeper", "author": "Robin Hobb", "genres": "Fantasy"},
        ],
        "ebooks": [
            {"id": 1, "title": "Dế Mèn Phiêu Lưu Ký", "author": "Tô Hoài", "genres": "Thiếu Nhi"},
            {"id": 2, "title": "Dragon Rider", "author": "Cornelia Funke", "genres": "Fantasy, Adventure"},
        ],
    }
