"""EscrowSwap: session login, order codes and an order-code chat relay."""
