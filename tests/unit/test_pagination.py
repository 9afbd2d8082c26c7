from app.common.pagination import Page, PageRequest


def test_page_request_offset_and_clamp():
    assert PageRequest(page=3, size=20).offset == 60
    assert PageRequest(page=-1, size=500).clamp(100) == PageRequest(page=0, size=100)
    assert PageRequest(page=0, size=0).clamp(100).size == 1


def test_page_metadata():
    page = Page(content=["a", "b"], total_elements=12, number=2, size=5)

    assert page.total_pages == 3
    assert page.first is False
    assert page.last is True
    assert page.number_of_elements == 2


def test_empty_page():
    page = Page(content=[], total_elements=0, number=0, size=20)

    assert page.total_pages == 0
    assert page.first is True
    assert page.last is True
