"""Share and asset conversion helpers.

A vault issues shares that are a proportional claim on its pooled underlying asset:

.. code-block:: text

    price per share = total assets / total supply
    assets = shares * total assets / total supply
    shares = assets * total supply / total assets

All on-chain quantities are raw ``uint256`` integers and the conversions use
integer floor division, the same way the vault contracts round.
"""


def safe_div(numerator: int, denominator: int) -> int:
    """Integer division where a zero denominator gives zero.

    The zero result is a defined value, not an error.
    """
    assert type(numerator) == int, f"Got {type(numerator)}"
    assert type(denominator) == int, f"Got {type(denominator)}"
    if denominator == 0:
        return 0
    return numerator // denominator


def convert_shares_to_assets(shares: int, total_assets: int, total_supply: int) -> int:
    """Calculate the asset value of shares at the live share price.

    :param shares:
        Raw share amount

    :return:
        Raw asset amount. Zero if the vault has no shares minted yet,
        because the price per share is undefined before the first deposit.
    """
    return safe_div(shares * total_assets, total_supply)


def convert_assets_to_shares(amount: int, total_assets: int, total_supply: int) -> int:
    """Calculate how many shares an asset amount is worth at the live share price.

    :param amount:
        Raw asset amount

    :return:
        Raw share amount. If the vault holds no assets, shares are taken 1:1
        to the asset amount. This only happens when a vault is fully drained.
    """
    if total_assets == 0:
        return amount
    return amount * total_supply // total_assets

