import shutil
from pathlib import Path

import pytest

testing_bag = Path(__file__).parent / "test-data" / "bag"


@pytest.fixture
def bag_dir(tmp_path):
    """Unpacked copy of test-data/bag: data/a.txt, data/b.txt, data/nested/c.txt."""
    bag_dir = tmp_path / "bagdir"
    shutil.copytree(testing_bag, bag_dir)
    return bag_dir
