"""
Body range list encoding.

The mobile client stores ranges over message text (mentions, styles) as a
serialized protobuf ``BodyRangeList``::

    message BodyRangeList {
        message BodyRange {
            optional int32 start = 1;
            optional int32 length = 2;
            oneof associatedValue {
                string mentionUuid = 3;
            }
        }
        repeated BodyRange ranges = 1;
    }

The message classes are built at import time from a descriptor, so no
generated ``_pb2`` module is needed. Fields have explicit presence: an
absent field is omitted while an empty ``mentionUuid`` is still written.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_PACKAGE = "deskport.ranges"


def _build_message_classes():
    fields = descriptor_pb2.FieldDescriptorProto
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="deskport/ranges.proto", package=_PACKAGE, syntax="proto2"
    )

    range_list = file_proto.message_type.add(name="BodyRangeList")
    body_range = range_list.nested_type.add(name="BodyRange")
    body_range.oneof_decl.add(name="associatedValue")
    body_range.field.add(
        name="start", number=1, type=fields.TYPE_INT32, label=fields.LABEL_OPTIONAL
    )
    body_range.field.add(
        name="length", number=2, type=fields.TYPE_INT32, label=fields.LABEL_OPTIONAL
    )
    body_range.field.add(
        name="mentionUuid",
        number=3,
        type=fields.TYPE_STRING,
        label=fields.LABEL_OPTIONAL,
        oneof_index=0,
    )
    range_list.field.add(
        name="ranges",
        number=1,
        type=fields.TYPE_MESSAGE,
        label=fields.LABEL_REPEATED,
        type_name=f".{_PACKAGE}.BodyRangeList.BodyRange",
    )

    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    list_descriptor = pool.FindMessageTypeByName(f"{_PACKAGE}.BodyRangeList")
    range_descriptor = list_descriptor.nested_types_by_name["BodyRange"]
    return (
        message_factory.GetMessageClass(list_descriptor),
        message_factory.GetMessageClass(range_descriptor),
    )


BodyRangeListMessage, BodyRangeMessage = _build_message_classes()


@dataclass(frozen=True)
class BodyRange:
    """A range over message text; absent fields are not serialized."""

    start: Optional[int] = None
    length: Optional[int] = None
    value: Optional[str] = None


def _fill(message, body_range: BodyRange) -> None:
    try:
        if body_range.start is not None:
            message.start = body_range.start
        if body_range.length is not None:
            message.length = body_range.length
        if body_range.value is not None:
            message.mentionUuid = body_range.value
    except (TypeError, ValueError) as e:
        raise ValueError(f"Cannot encode {body_range}: {e}") from e


def encode_body_range(body_range: BodyRange) -> bytes:
    """
    Serialize one BodyRange sub-message.

    Raises:
        ValueError: If start or length does not fit in 32 bits
    """
    message = BodyRangeMessage()
    _fill(message, body_range)
    return message.SerializeToString(deterministic=True)


def encode_body_ranges(ranges: Sequence[BodyRange]) -> Optional[bytes]:
    """
    Serialize an ordered sequence of ranges as a BodyRangeList.

    Args:
        ranges: Ranges in the order they should appear

    Returns:
        Encoded blob, or None for an empty sequence

    Raises:
        ValueError: If any start or length does not fit in 32 bits
    """
    if not ranges:
        return None
    message = BodyRangeListMessage()
    for body_range in ranges:
        _fill(message.ranges.add(), body_range)
    return message.SerializeToString(deterministic=True)
