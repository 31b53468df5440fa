"""skeleton-gestures - Full-body gesture recognition from skeletal pose streams."""

__version__ = "0.1.0"

from skeleton_gestures.skeleton import (
    BodyTrackingState,
    FrameEdges,
    Joint,
    JointTrackingState,
    JointType,
    PoseFrame,
)
from skeleton_gestures.gestures import GestureKind, Side, StaticPoseClassifier, arm_raised, hands_overhead
from skeleton_gestures.motion import MotionClassifier, MotionDeltas, MotionWindowState
from skeleton_gestures.actions import (
    ActionMapper,
    ActionName,
    ActionRequest,
    ActionSink,
    KeyboardSink,
    LogSink,
    ShellSink,
)
from skeleton_gestures.dispatcher import GestureDispatcher
from skeleton_gestures.config import EngineConfig, TrackingMode, load_config, save_config
from skeleton_gestures.pipeline import GesturePipeline, GestureEvent
from skeleton_gestures.recorder import PosePlayer, PoseRecorder
