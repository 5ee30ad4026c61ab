from payments.gateway import TransferGateway, HttpTransferGateway

__all__ = [
    'TransferGateway',
    'HttpTransferGateway',
]
