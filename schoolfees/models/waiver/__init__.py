from schoolfees.models.waiver.waiver import WaiverRequest

__all__ = ["WaiverRequest"]
