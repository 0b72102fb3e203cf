import asyncio

from link_dispatcher import (
    BaseResolver,
    Config,
    DispatchContext,
    LinkCategory,
    LinkDispatcher,
    LinkSource,
    ResolvedURL,
)

FILE_URL = "https://mega.nz/file/abcDEF12#fileKey"
IPC_URL = "https://mega.nz/fm/ipc"

LOGGED_OUT = DispatchContext(logged_in=False)


class RecordingHandler:
    def __init__(self, should_raise: bool = False):
        self.links = []
        self.should_raise = should_raise

    def __call__(self, link):
        self.links.append(link)
        if self.should_raise:
            raise RuntimeError("boom")


class DummyResolver(BaseResolver):
    def __init__(self, final_url=None, error=None):
        self.final_url = final_url
        self.error = error
        self.calls = []

    async def resolve(self, url):
        self.calls.append(url)
        if self.error:
            return ResolvedURL(url=url, success=False, error=self.error)
        return ResolvedURL(url=url, success=True, final_url=self.final_url, hops=1)


def test_dispatch_calls_registered_handler():
    handler = RecordingHandler()
    dispatcher = LinkDispatcher(resolver=DummyResolver())
    dispatcher.register(LinkCategory.FILE_LINK, handler)

    result = dispatcher.dispatch(FILE_URL)

    assert result.handled
    assert not result.deferred
    assert result.error is None
    assert result.link.category is LinkCategory.FILE_LINK
    assert handler.links == [result.link]


def test_dispatch_uses_fallback_for_unregistered_category():
    fallback = RecordingHandler()
    dispatcher = LinkDispatcher(resolver=DummyResolver())
    dispatcher.set_fallback(fallback)

    result = dispatcher.dispatch("not a link")

    assert result.handled
    assert fallback.links[0].category is LinkCategory.DEFAULT


def test_dispatch_without_handler_is_not_handled():
    dispatcher = LinkDispatcher(resolver=DummyResolver())

    result = dispatcher.dispatch(FILE_URL)

    assert not result.handled
    assert not result.deferred
    assert result.error is None


def test_handler_failure_is_reported_not_raised():
    dispatcher = LinkDispatcher(resolver=DummyResolver())
    dispatcher.register(LinkCategory.FILE_LINK, RecordingHandler(should_raise=True))

    result = dispatcher.dispatch(FILE_URL)

    assert not result.handled
    assert result.error == "boom"


def test_public_links_are_not_deferred_when_logged_out():
    handler = RecordingHandler()
    dispatcher = LinkDispatcher(resolver=DummyResolver())
    dispatcher.register(LinkCategory.FILE_LINK, handler)

    result = dispatcher.dispatch(FILE_URL, LOGGED_OUT)

    assert result.handled
    assert not dispatcher.has_pending


def test_login_required_link_is_deferred_then_flushed():
    handler = RecordingHandler()
    dispatcher = LinkDispatcher(resolver=DummyResolver())
    dispatcher.register(LinkCategory.INCOMING_PENDING_CONTACTS_LINK, handler)

    result = dispatcher.dispatch(IPC_URL, LOGGED_OUT)

    assert result.deferred
    assert not result.handled
    assert handler.links == []
    assert dispatcher.has_pending

    flushed = dispatcher.flush_pending()

    assert flushed.handled
    assert handler.links[0].raw_url == IPC_URL
    assert handler.links[0].context.logged_in
    assert not dispatcher.has_pending
    assert dispatcher.flush_pending() is None


def test_flush_pending_with_explicit_context():
    handler = RecordingHandler()
    dispatcher = LinkDispatcher(resolver=DummyResolver())
    dispatcher.register(LinkCategory.INCOMING_PENDING_CONTACTS_LINK, handler)
    dispatcher.dispatch(IPC_URL, LOGGED_OUT)

    context = DispatchContext(source=LinkSource.PUSH_NOTIFICATION, logged_in=True)
    dispatcher.flush_pending(context)

    assert handler.links[0].context == context


def test_newest_pending_link_wins():
    dispatcher = LinkDispatcher(resolver=DummyResolver())

    dispatcher.dispatch(IPC_URL, LOGGED_OUT)
    dispatcher.dispatch("mega://fm/chat", LOGGED_OUT)

    pending = dispatcher.take_pending()
    assert pending.category is LinkCategory.OPEN_CHAT_SECTION_LINK
    assert dispatcher.take_pending() is None


def test_classify_resolved_follows_unrecognized_http_links():
    resolver = DummyResolver(final_url="https://mega.nz/chat/abcDEF12#chatKey")
    dispatcher = LinkDispatcher(resolver=resolver)

    link = asyncio.run(dispatcher.classify_resolved("https://short.example/x"))

    assert link.category is LinkCategory.PUBLIC_CHAT_LINK
    assert link.raw_url == "https://short.example/x"
    assert link.url == "https://mega.nz/chat/abcDEF12#chatKey"
    assert resolver.calls == ["https://short.example/x"]


def test_classify_resolved_skips_network_for_recognized_links():
    resolver = DummyResolver(final_url="https://mega.nz/fm/ipc")
    dispatcher = LinkDispatcher(resolver=resolver)

    link = asyncio.run(dispatcher.classify_resolved(FILE_URL))

    assert link.category is LinkCategory.FILE_LINK
    assert resolver.calls == []


def test_classify_resolved_skips_non_http_input():
    resolver = DummyResolver(final_url="https://mega.nz/fm/ipc")
    dispatcher = LinkDispatcher(resolver=resolver)

    link = asyncio.run(dispatcher.classify_resolved("mega://nothing-here"))

    assert link.is_default
    assert resolver.calls == []


def test_classify_resolved_keeps_default_on_failure():
    dispatcher = LinkDispatcher(resolver=DummyResolver(error="Timeout"))

    link = asyncio.run(dispatcher.classify_resolved("https://short.example/x"))

    assert link.is_default
    assert link.raw_url == "https://short.example/x"


def test_classify_resolved_keeps_default_when_final_url_unrecognized():
    dispatcher = LinkDispatcher(resolver=DummyResolver(final_url="https://example.com/"))

    link = asyncio.run(dispatcher.classify_resolved("https://short.example/x"))

    assert link.is_default
    assert link.url == "https://short.example/x"


def test_from_config():
    config = Config(
        link_scheme="megaqa",
        link_hosts=("staging.mega.test",),
        unwrap_redirects=False,
        max_redirect_depth=2,
        resolver_timeout=3.5,
        log_level="INFO",
    )

    dispatcher = LinkDispatcher.from_config(config)

    assert dispatcher.classifier.scheme == "megaqa"
    assert dispatcher.classifier.hosts == frozenset({"staging.mega.test"})
    assert dispatcher.classifier.unwrap_redirects is False
    assert dispatcher.resolver.timeout == 3.5
    assert dispatcher.classify("megaqa://fm/ipc").category is (
        LinkCategory.INCOMING_PENDING_CONTACTS_LINK
    )


def test_classify_resolved_survives_malformed_http_url():
    dispatcher = LinkDispatcher()

    link = asyncio.run(dispatcher.classify_resolved("http://[::1"))

    assert link.is_default
    assert link.raw_url == "http://[::1"
