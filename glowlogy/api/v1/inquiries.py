from fastapi import APIRouter, Depends, Request

from glowlogy.api.v1.schemas import (
    CallbackRequestSchema,
    ContactSchema,
    MembershipInquirySchema,
    NewsletterSchema,
    SubmissionReceiptSchema,
)
from glowlogy.application.ports.identity import IdentityPort
from glowlogy.application.use_cases.inquiry_intake import InquiryIntake, preferred_time_options, service_options
from glowlogy.domain.entities.inquiry import RequestContext, SubmissionReceipt
from glowlogy.wiring.dependencies import get_identity_source, get_inquiry_intake

router = APIRouter()


def _receipt(receipt: SubmissionReceipt) -> SubmissionReceiptSchema:
    return SubmissionReceiptSchema(id=receipt.id, kind=receipt.kind.value, message=receipt.message)


@router.post("/contact", response_model=SubmissionReceiptSchema, status_code=201)
async def submit_contact(req: ContactSchema, uc: InquiryIntake = Depends(get_inquiry_intake)):
    receipt = await uc.submit_contact(
        name=req.name,
        email=req.email,
        message=req.message,
        phone=req.phone,
        subject=req.subject,
    )
    return _receipt(receipt)


@router.post("/membership-inquiries", response_model=SubmissionReceiptSchema, status_code=201)
async def submit_membership(
    req: MembershipInquirySchema,
    uc: InquiryIntake = Depends(get_inquiry_intake),
    identity_source: IdentityPort = Depends(get_identity_source),
):
    identity = await identity_source.current()
    receipt = await uc.submit_membership(
        plan_name=req.plan_name,
        customer_name=req.customer_name,
        email=req.email,
        phone=req.phone,
        plan_price=req.plan_price,
        user_id=identity.id if identity else None,
    )
    return _receipt(receipt)


@router.get("/callback-requests/options")
def callback_options() -> dict[str, list[dict[str, str]]]:
    return {"preferred_times": preferred_time_options(), "services": service_options()}


@router.post("/callback-requests", response_model=SubmissionReceiptSchema, status_code=201)
async def submit_callback(
    req: CallbackRequestSchema,
    request: Request,
    uc: InquiryIntake = Depends(get_inquiry_intake),
):
    context = RequestContext(
        user_agent=request.headers.get("user-agent", ""),
        referrer=request.headers.get("referer", ""),
    )
    receipt = await uc.submit_callback(
        name=req.name,
        phone=req.phone,
        preferred_time=req.preferred_time,
        service=req.service,
        message=req.message,
        context=context,
    )
    return _receipt(receipt)


@router.post("/newsletter", response_model=SubmissionReceiptSchema, status_code=201)
async def subscribe_newsletter(req: NewsletterSchema, uc: InquiryIntake = Depends(get_inquiry_intake)):
    receipt = await uc.subscribe_newsletter(req.email)
    return _receipt(receipt)
