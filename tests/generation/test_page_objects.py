from pathcraft.core.models import Element, InteractionStep, UserPath
from pathcraft.generation.frameworks import get_dialect
from pathcraft.generation.models import GenerationOptions
from pathcraft.generation.naming import camel_case, pascal_page_name, selector_name
from pathcraft.generation.page_objects import PageObjectGenerator


def _step(type, selector, element_type, ts, value=None, text=None, attributes=None, label=None):
    return InteractionStep(
        type=type,
        element=Element(selector=selector, type=element_type, text=text, attributes=attributes or {}, label=label),
        value=value,
        timestamp=ts,
        action=f"{type} {selector}",
    )


def signup_path():
    return UserPath(
        name="Signup",
        start_url="https://shop.test/",
        steps=[
            InteractionStep(type="navigation", value="https://shop.test/", timestamp=0, action="Navigate"),
            _step("click", "a.signup", "link", 1, text="Sign up"),
            InteractionStep(type="navigation", value="https://shop.test/user-account/login", timestamp=2, action="Navigate"),
            _step("type", "#email", "email-input", 3, "bob@shop.test", attributes={"name": "email"}),
            _step("type", "#pw", "password-input", 4, "hunter2", attributes={"id": "pw", "name": "password"}),
            _step("click", "button.primary", "button", 5, text="Login"),
        ],
    )


def generate(options=None, framework="playwright"):
    options = options or GenerationOptions(framework=framework)
    return PageObjectGenerator(options, get_dialect(options.framework)).generate(signup_path())


def test_one_class_per_page():
    files = generate()
    assert [f.filename for f in files] == ["HomePage.ts", "UserAccountLoginPage.ts"]
    assert all(f.type == "page-object" and f.path == "generated-tests/pages" for f in files)


def test_login_page_contents():
    content = generate()[1].content

    assert content.startswith("import type { Page } from '@playwright/test';")
    assert "export class UserAccountLoginPage {" in content
    assert "readonly url = 'https://shop.test/user-account/login';" in content
    assert "    email: '#email'," in content
    assert "    pw: '#pw'," in content
    assert "    loginButton: 'button.primary'," in content
    assert "async fillAndSubmitForm(email: string, password: string) {" in content
    assert "await this.page.fill(this.selectors.email, email);" in content
    assert "await this.page.fill(this.selectors.pw, password);" in content
    assert "await this.page.click(this.selectors.loginButton);" in content
    assert "async login(email: string, password: string) {" in content
    assert "async navigate() {" in content
    assert "await this.page.goto(this.url);" in content
    assert "await this.page.waitForLoadState('networkidle');" in content
    assert "get email() {" in content
    assert "return this.page.locator(this.selectors.email);" in content


def test_home_page_has_no_form_action():
    content = generate()[0].content
    assert "fillAndSubmitForm" not in content
    assert "signUpLink: 'a.signup'," in content


def test_javascript_page_objects():
    files = generate(GenerationOptions(language="javascript"))
    content = files[1].content

    assert files[1].filename == "UserAccountLoginPage.js"
    assert "import" not in content
    assert "readonly" not in content
    assert "constructor(page) {" in content
    assert "async login(email, password) {" in content


def test_cypress_page_objects_use_cy():
    content = generate(framework="cypress")[1].content

    assert "constructor" not in content
    assert "login(email: string, password: string) {" in content
    assert "async " not in content
    assert "cy.get(this.selectors.email).type(email);" in content
    assert "cy.visit(this.url);" in content
    assert "return cy.get(this.selectors.email);" in content


def test_trailing_comma_can_be_disabled():
    from pathcraft.generation.models import CodeFormatting

    options = GenerationOptions(formatting=CodeFormatting(trailing_comma=False))
    content = generate(options)[1].content
    assert "    loginButton: 'button.primary'\n" in content


def test_naming_helpers():
    assert camel_case("First name") == "firstName"
    assert camel_case("--") == ""
    assert pascal_page_name("https://a.test/") == "Home"
    assert pascal_page_name("https://a.test/checkout/step_2") == "CheckoutStep2"
    assert pascal_page_name("/2fa") == "Page2fa"
    assert selector_name(Element(selector="div.x", type="text-input")) == "textinputElement"
    assert selector_name(Element(selector="#a", type="button", text="Save now")) == "saveNowButton"


def test_recorded_password_click_is_filled_from_parameter():
    path = UserPath(
        name="Login",
        start_url="https://shop.test/login",
        steps=[
            _step("type", "#user", "text-input", 1, "bob", attributes={"name": "username"}),
            _step("click", "#secret", "password-input", 2, attributes={"id": "secret"}),
            _step("click", "button.go", "button", 3, text="Login"),
        ],
    )
    options = GenerationOptions(framework="playwright")
    content = PageObjectGenerator(options, get_dialect("playwright")).generate(path)[0].content

    assert "async login(username: string, password: string) {" in content
    assert "async fillAndSubmitForm(username: string, password: string) {" in content
    assert "await this.page.fill(this.selectors.secret, password);" in content
    assert "click(this.selectors.secret)" not in content
