from .control_point import ControlPoint, PhotoEntry

__all__ = ['ControlPoint', 'PhotoEntry']
