from schoolfees.models.transport.transport import StudentTransportAssignment, TransportRoute

__all__ = ["StudentTransportAssignment", "TransportRoute"]
