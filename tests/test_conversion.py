"""Share and asset conversion."""

from yearn_ledger.conversion import convert_assets_to_shares, convert_shares_to_assets, safe_div


def test_safe_div():
    assert safe_div(10, 3) == 3
    assert safe_div(10, 0) == 0
    assert safe_div(0, 0) == 0


def test_shares_to_assets():
    # 1.05 assets per share
    assert convert_shares_to_assets(100, 1_050, 1_000) == 105
    # Rounds down like the vault
    assert convert_shares_to_assets(1, 2, 3) == 0


def test_shares_to_assets_empty_vault():
    """No shares minted yet gives zero, not a division error."""
    assert convert_shares_to_assets(500, 0, 0) == 0
    assert convert_shares_to_assets(500, 1_000, 0) == 0


def test_assets_to_shares():
    assert convert_assets_to_shares(105, 1_050, 1_000) == 100


def test_assets_to_shares_drained_vault():
    """A vault holding no assets converts 1:1."""
    assert convert_assets_to_shares(777, 0, 1_000) == 777

