"""Payment instruction rendering (EIP-681 transfer URI and explorer link)."""

from __future__ import annotations

from pagosettle.models.payment import PaymentDescriptor


def payment_uri(descriptor: PaymentDescriptor) -> str:
    """ERC-20 ``transfer`` request a wallet can scan.

    ``ethereum:<token>@<chain_id>/transfer?address=<recipient>&uint256=<amount>``
    """
    chain = descriptor.chain
    return (
        f"ethereum:{chain.token_contract_id}@{chain.chain_id}/transfer"
        f"?address={descriptor.recipient}&uint256={descriptor.encoded_amount}"
    )


def explorer_url(descriptor: PaymentDescriptor) -> str:
    """Explorer page where the recipient's token transfers can be watched."""
    return descriptor.chain.token_url(descriptor.recipient)
