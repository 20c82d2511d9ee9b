import pytest

from splitstuff.models import Member


@pytest.fixture
def members():
    return [
        Member(id="A", name="Asha", upi_id="asha@okbank"),
        Member(id="B", name="Bilal"),
        Member(id="C", name="Chen", upi_id="chen@upi"),
    ]
